"""
Catalog of controlled errors returned by the cafeqr APIs.

Served read-only to the super-admin console for reference.
"""

ERROR_CATALOG = {
    "AUTH_001": {
        "title": "Login gagal",
        "description": "Email atau kata sandi tidak cocok dengan akun mana pun.",
        "http_code": 401,
        "solution": "Periksa kembali email dan kata sandi lalu coba lagi.",
    },
    "AUTH_REQUIRED": {
        "title": "Belum login",
        "description": "Halaman admin diakses tanpa sesi yang valid atau sesi sudah kedaluwarsa.",
        "http_code": 401,
        "solution": "Login kembali melalui halaman /login.",
    },
    "PERM_001": {
        "title": "Akses ditolak",
        "description": "Akun tidak terdaftar sebagai admin kafe ini atau sebagai super admin.",
        "http_code": 403,
        "solution": "Minta super admin untuk menautkan akun ke kafe yang benar.",
    },
    "PERM_002": {
        "title": "Izin ditolak",
        "description": "Operasi penyimpanan ditolak oleh aturan akses.",
        "http_code": 403,
        "solution": "Periksa log permission-error untuk path dan operasi yang ditolak.",
    },
    "TENANT_NOT_FOUND": {
        "title": "Kafe tidak ditemukan",
        "description": "Tidak ada kafe dengan slug pada URL.",
        "http_code": 404,
        "solution": "Pindai ulang QR code di meja.",
    },
    "TENANT_MOVED": {
        "title": "Alamat kafe berubah",
        "description": "Slug pada URL adalah slug lama dari kafe yang telah diganti namanya.",
        "http_code": 308,
        "solution": "Ikuti redirect ke slug terbaru.",
    },
    "STORE_UNAVAILABLE": {
        "title": "Gagal memuat data",
        "description": "Database tidak dapat dijangkau atau query gagal.",
        "http_code": 503,
        "solution": "Coba lagi beberapa saat lagi.",
    },
    "VALIDATION_ERROR": {
        "title": "Data tidak valid",
        "description": "Input tidak lolos validasi; detail per field dikembalikan pada 'fields'.",
        "http_code": 400,
        "solution": "Perbaiki field yang ditandai lalu kirim ulang.",
    },
    "ORDER_STATE_INVALID": {
        "title": "Perubahan status tidak valid",
        "description": "Status pesanan hanya boleh maju satu langkah atau dibatalkan sebelum diantar.",
        "http_code": 409,
        "solution": "Muat ulang daftar pesanan untuk melihat status terbaru.",
    },
    "CHECKOUT_INVALID": {
        "title": "Pesanan ditolak",
        "description": "Token verifikasi salah atau ada menu yang tidak tersedia; field yang salah ada pada 'fields'.",
        "http_code": 422,
        "solution": "Tanyakan token harian kepada kasir atau hapus menu yang habis dari keranjang.",
    },
    "CONFLICT": {
        "title": "Data bentrok",
        "description": "Nama, slug, nomor meja atau email sudah dipakai.",
        "http_code": 409,
        "solution": "Gunakan nilai lain lalu simpan ulang.",
    },
    "RATE_LIMITED": {
        "title": "Terlalu banyak permintaan",
        "description": "Batas permintaan per alamat klien terlampaui.",
        "http_code": 429,
        "solution": "Tunggu sesuai header Retry-After.",
    },
    "DOCUMENT_MALFORMED": {
        "title": "Data tersimpan rusak",
        "description": "Record di database tidak lolos validasi skema dokumen; akses ditolak.",
        "http_code": 500,
        "solution": "Perbaiki record yang disebut pada log lalu coba lagi.",
    },
    "PAYLOAD_TOO_LARGE": {
        "title": "File terlalu besar",
        "description": "Gambar yang diunggah melebihi batas ukuran 5 MB.",
        "http_code": 413,
        "solution": "Kompres gambar lalu unggah ulang.",
    },
    "SYSTEM_001": {
        "title": "Kesalahan internal",
        "description": "Exception yang tidak tertangani di server.",
        "http_code": 500,
        "solution": "Periksa log aplikasi.",
    },
}

"""Images API - menu photos, cafe logo and QRIS image uploads."""

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request

from cafeqr_admin.decorators import tenant_admin_required
from cafeqr_shared.serializers import success_response
from cafeqr_shared.services.image_service import upload_image
from cafeqr_shared.validation import ValidationError

images_bp = Blueprint("admin_images", __name__)


@images_bp.post("/<slug>/admin/images")
@tenant_admin_required
def post_image(slug: str, ctx):
    """
    Form data:
    - file: image file (max 5 MB)
    - kind: menu (default), logo or qris
    """
    file = request.files.get("file")
    if file is None:
        raise ValidationError("Pilih file gambar", {"file": "Pilih file gambar"})

    url = upload_image(
        current_app.config["CAFEQR_CONFIG"],
        ctx.tenant.id,
        request.form.get("kind", "menu"),
        file.filename or "",
        file.read(),
    )
    return jsonify(success_response({"url": url}, "Gambar berhasil diunggah")), HTTPStatus.CREATED

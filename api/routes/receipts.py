"""
Receipt pages.

Server-rendered CRUD for receipts:
- GET  /receipts                - List receipts, one page at a time
- GET  /receipts/add            - Blank receipt form
- POST /receipts/add            - Create a receipt
- GET  /receipts/{id}           - Show a receipt
- GET  /receipts/{id}/edit      - Receipt form, pre-filled
- POST /receipts/{id}/edit      - Update a receipt
- GET  /receipts/{id}/delete    - Delete a receipt

Storage and upload errors are not caught here; they propagate to the
shared handlers registered in api.server.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from starlette.datastructures import FormData, UploadFile

from api.dependencies import get_image_storage, get_receipt_repository
from api.schemas.receipt import ReceiptForm
from api.templating import templates
from core.config import settings
from core.logging import get_logger
from core.storage import BaseReceiptRepository, Receipt
from tools.image_storage import ImageStorageClient


logger = get_logger(__name__)
router = APIRouter(
    prefix="/receipts",
    tags=["Receipts"],
    default_response_class=HTMLResponse,
)


async def upload_form_image(
    form: FormData,
    image_storage: ImageStorageClient,
    field_name: str = "image",
) -> Optional[str]:
    """
    Send the form's image file, if any, to image storage.

    Returns the public URL of the stored image, or None when the form
    carried no file (browsers send an empty part when nothing is picked).
    """
    upload = form.get(field_name)
    if not isinstance(upload, UploadFile) or not upload.filename:
        return None

    try:
        # One byte past the limit is enough to reject oversized files
        data = await upload.read(image_storage.max_size + 1)
    finally:
        await upload.close()

    if not data:
        return None

    image = await image_storage.upload(upload.filename, data, upload.content_type)
    logger.info(
        "Receipt image uploaded",
        object_name=image.object_name,
        size=image.size,
    )
    return image.public_url


def _receipt_url(request: Request, receipt: Receipt) -> str:
    return str(request.url_for("view_receipt", receipt_id=receipt.id))


@router.get("", name="list_receipts")
async def list_receipts(
    request: Request,
    page_token: Optional[str] = Query(default=None, alias="pageToken"),
    repository: BaseReceiptRepository = Depends(get_receipt_repository),
):
    """Display a page of receipts."""
    page = await repository.list(settings.page_size, page_token)

    return templates.TemplateResponse(
        request,
        "receipts/list.html",
        {
            "receipts": page.receipts,
            "next_page_token": page.next_page_token,
        },
    )


@router.get("/add", name="add_receipt_form")
async def add_receipt_form(request: Request):
    """Display a form for creating a receipt."""
    return templates.TemplateResponse(
        request,
        "receipts/form.html",
        {"receipt": Receipt(), "action": "Add"},
    )


@router.post("/add", name="add_receipt")
async def add_receipt(
    request: Request,
    repository: BaseReceiptRepository = Depends(get_receipt_repository),
    image_storage: ImageStorageClient = Depends(get_image_storage),
):
    """Create a receipt, uploading its image first if one was sent."""
    form = await request.form()
    fields = ReceiptForm.model_validate(dict(form)).to_fields()
    image_url = await upload_form_image(form, image_storage)

    receipt = await repository.create(fields, image_url=image_url)
    logger.info(
        "Receipt created",
        receipt_id=receipt.id,
        has_image=image_url is not None,
    )

    return RedirectResponse(
        _receipt_url(request, receipt),
        status_code=status.HTTP_303_SEE_OTHER,
    )


@router.get("/{receipt_id}/edit", name="edit_receipt_form")
async def edit_receipt_form(
    request: Request,
    receipt_id: str,
    repository: BaseReceiptRepository = Depends(get_receipt_repository),
):
    """Display a receipt for editing."""
    receipt = await repository.read(receipt_id)

    return templates.TemplateResponse(
        request,
        "receipts/form.html",
        {"receipt": receipt, "action": "Edit"},
    )


@router.post("/{receipt_id}/edit", name="edit_receipt")
async def edit_receipt(
    request: Request,
    receipt_id: str,
    repository: BaseReceiptRepository = Depends(get_receipt_repository),
    image_storage: ImageStorageClient = Depends(get_image_storage),
):
    """Update a receipt. The stored image is kept unless a new one is sent."""
    form = await request.form()
    fields = ReceiptForm.model_validate(dict(form)).to_fields()
    # Don't leave an uploaded image behind for a receipt that doesn't exist
    await repository.read(receipt_id)
    image_url = await upload_form_image(form, image_storage)

    receipt = await repository.update(receipt_id, fields, image_url=image_url)
    logger.info(
        "Receipt updated",
        receipt_id=receipt_id,
        has_new_image=image_url is not None,
    )

    return RedirectResponse(
        _receipt_url(request, receipt),
        status_code=status.HTTP_303_SEE_OTHER,
    )


@router.get("/{receipt_id}", name="view_receipt")
async def view_receipt(
    request: Request,
    receipt_id: str,
    repository: BaseReceiptRepository = Depends(get_receipt_repository),
):
    """Display a receipt."""
    receipt = await repository.read(receipt_id)

    return templates.TemplateResponse(
        request,
        "receipts/view.html",
        {"receipt": receipt},
    )


@router.get("/{receipt_id}/delete", name="delete_receipt")
async def delete_receipt(
    request: Request,
    receipt_id: str,
    repository: BaseReceiptRepository = Depends(get_receipt_repository),
):
    """Delete a receipt and go back to the list."""
    await repository.delete(receipt_id)
    logger.info("Receipt deleted", receipt_id=receipt_id)

    return RedirectResponse(
        str(request.url_for("list_receipts")),
        status_code=status.HTTP_303_SEE_OTHER,
    )

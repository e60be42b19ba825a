from fastapi import APIRouter, File, Form, Request, UploadFile, status
from fastapi.responses import FileResponse

from ..core.deps import Storage, Store
from ..models.common import ok_data
from ..models.documents import CheckDocIdOut, DocumentCreate, FileDeleteRequest
from ..services import document_service, upload_service

router = APIRouter(prefix="/api/masterplandocs", tags=["masterplandocs"])


@router.get("/check-doc-id/{doc_id}", response_model=CheckDocIdOut)
def check_doc_id(doc_id: str, store: Store):
    return {"exists": document_service.check_doc_id_exists(store, doc_id)}


@router.post("", status_code=status.HTTP_201_CREATED, response_model=dict)
@router.post("/", status_code=status.HTTP_201_CREATED, response_model=dict, include_in_schema=False)
def create_document(body: DocumentCreate, store: Store):
    doc = document_service.create_document(store, body)
    return ok_data(doc, message="Master Plan Document created successfully")


@router.get("", response_model=dict)
@router.get("/", response_model=dict, include_in_schema=False)
def list_documents(store: Store):
    return ok_data(document_service.list_documents(store))


@router.post("/upload", response_model=dict)
async def upload_file(
    storage: Storage,
    request: Request,
    document: UploadFile | None = File(None),
    doc_id: str | None = Form(None),
    doc_type: str | None = Form(None),
    revision_no: str | None = Form(None),
):
    content = None
    if document is not None:
        limit = request.app.state.max_upload_size
        # read one byte past the limit so oversize files are detected without buffering them whole
        content = await document.read(limit + 1)
    return upload_service.upload_file(
        storage,
        content,
        document.filename if document is not None else None,
        document.content_type if document is not None else None,
        doc_id,
        doc_type,
        revision_no,
        max_size=request.app.state.max_upload_size,
    )


@router.delete("/upload", response_model=dict)
def delete_file(body: FileDeleteRequest, storage: Storage):
    upload_service.delete_file(storage, body.file_path)
    return {"success": True, "message": "File deleted successfully"}


@router.get("/download/{doc_id}/{file_name}")
def download_file(doc_id: str, file_name: str, storage: Storage):
    path = upload_service.resolve_download(storage, doc_id, file_name)
    return FileResponse(path, filename=file_name)


@router.get("/{id}", response_model=dict)
def get_document(id: str, store: Store):
    return ok_data(document_service.get_document(store, id))

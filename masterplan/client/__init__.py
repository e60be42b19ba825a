from .api import DEFAULT_API_URL, ClientError, MasterPlanClient, ServerUnreachable
from .forms import AddDocumentForm, DocumentForm, SelectedFile, SubmitResult, select_file, validate_form
from .listing import PAGE_SIZE, DocumentListing, filter_documents, resolve_download_url

__all__ = [
    "DEFAULT_API_URL",
    "ClientError",
    "MasterPlanClient",
    "ServerUnreachable",
    "AddDocumentForm",
    "DocumentForm",
    "SelectedFile",
    "SubmitResult",
    "select_file",
    "validate_form",
    "PAGE_SIZE",
    "DocumentListing",
    "filter_documents",
    "resolve_download_url",
]

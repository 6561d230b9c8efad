from services.acquisition.models import FetchFailure, FetchFailureKind, FetchResult, FetchSuccess
from services.acquisition.session_fetcher import SessionFetcher

__all__ = [
    "FetchFailure",
    "FetchFailureKind",
    "FetchResult",
    "FetchSuccess",
    "SessionFetcher",
]

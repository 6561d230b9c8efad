import logging

from configs import app_config
from exceptions.common import (
    AcquisitionError,
    BotProtectionError,
    EmptyImageError,
    ImageTooLargeError,
    StoreError,
)
from extensions.ext_storage import storage
from libs.file_helper import FileHelper
from libs.helper import mask_url
from schemas.upload import (
    DirectUploadRequest,
    StoredAsset,
    UploadMetadata,
    UploadMode,
    UploadResult,
    UrlUploadRequest,
)
from services.acquisition import FetchFailure, FetchFailureKind, SessionFetcher

logger = logging.getLogger(__name__)

BOT_PROTECTION_DETAILS = (
    "The source URL is protected by bot detection systems. "
    "Please contact support for integration options."
)
BOT_PROTECTION_SUGGESTION = (
    "Consider API token authentication, webhook integration, or direct storage access"
)
BOT_PROTECTION_CONTACT = "Request integration support to bypass bot protection"


class UploadService:
    """
    Turns a validated upload request into a stored image.

    Direct uploads carry their bytes; URL uploads go through ``SessionFetcher``.
    Both then share the size checks, the storage path derivation and the store
    write. The write is not retried here, the storage backend has its own
    retry layer.
    """

    def __init__(self, fetcher: SessionFetcher | None = None, max_bytes: int | None = None):
        self.fetcher = fetcher or SessionFetcher()
        self.max_bytes = max_bytes or app_config.UPLOAD_IMAGE_MAX_BYTES

    async def process(self, request: DirectUploadRequest | UrlUploadRequest) -> UploadResult:
        if isinstance(request, UrlUploadRequest):
            data, content_type = await self._acquire(request.image_url)
            original_url = mask_url(request.image_url)
        else:
            data, content_type = request.image, request.content_type
            original_url = UploadMode.DIRECT.value
        self._check_size(data)

        final_filename = FileHelper.generate_final_filename(request.filename)
        storage_path = FileHelper.build_storage_path(request.branch, request.date, final_filename)

        metadata = UploadMetadata(
            final_filename=final_filename,
            storage_path=storage_path,
            image_size_bytes=len(data),
            content_type=content_type,
            upload_mode=request.mode,
            original_url=original_url,
        )
        self._log_metadata(request, metadata)

        try:
            public_url = await storage.put(storage_path, data, content_type)
        except Exception as e:
            logger.exception(f"Storage upload failed for {storage_path}")
            raise StoreError(detail="Failed to upload image to storage", details=str(e)) from e

        logger.info(f"Upload completed successfully. Public URL: {mask_url(public_url)}")
        asset = StoredAsset(
            path=storage_path,
            public_url=public_url,
            size_bytes=len(data),
            content_type=content_type,
        )
        return UploadResult(asset=asset, metadata=metadata, data=data)

    async def _acquire(self, image_url: str) -> tuple[bytes, str]:
        result = await self.fetcher.fetch(image_url)
        if not isinstance(result, FetchFailure):
            return result.data, result.content_type

        if result.kind == FetchFailureKind.BOT_PROTECTION_DETECTED:
            logger.warning(f"Bot protection detected for URL: {mask_url(image_url)}")
            raise BotProtectionError(
                detail="Bot protection detected - unable to fetch image",
                details=BOT_PROTECTION_DETAILS,
                suggestion=BOT_PROTECTION_SUGGESTION,
                contactInfo=BOT_PROTECTION_CONTACT,
                originalError=result.message,
            )
        if result.kind == FetchFailureKind.SIZE_EXCEEDED:
            raise ImageTooLargeError(details=result.detail)
        if result.kind == FetchFailureKind.EMPTY:
            raise EmptyImageError(details=result.detail)
        raise AcquisitionError(
            detail=result.message,
            details=result.detail,
            finalUrl=result.final_url,
        )

    def _check_size(self, data: bytes) -> None:
        if not data:
            raise EmptyImageError()
        if len(data) > self.max_bytes:
            raise ImageTooLargeError(
                details=f"Maximum size is {self.max_bytes // (1024 * 1024)}MB"
            )

    @staticmethod
    def _log_metadata(request: DirectUploadRequest | UrlUploadRequest, metadata: UploadMetadata):
        logger.info(
            "Upload metadata: branch=%s normalized_branch=%s date=%s original_filename=%s "
            "final_filename=%s storage_path=%s content_type=%s mode=%s size=%d original_url=%s",
            request.branch,
            FileHelper.normalize_segment(request.branch),
            request.date,
            request.filename,
            metadata.final_filename,
            metadata.storage_path,
            metadata.content_type,
            metadata.upload_mode,
            metadata.image_size_bytes,
            metadata.original_url,
        )

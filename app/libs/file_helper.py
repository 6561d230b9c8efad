"""文件处理工具类 - 存储路径与文件名规范化"""

import re
import uuid
from pathlib import PurePosixPath

# 空白与路径分隔符折叠为连字符
_SEPARATOR_RE = re.compile(r"[\s/\\]+")
_DISALLOWED_RE = re.compile(r"[^a-z0-9\-]")

UNIQUE_SUFFIX_LENGTH = 8
FINAL_EXTENSION = ".jpg"

# 文件头魔数 -> MIME 类型
IMAGE_SIGNATURES = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
)


class FileHelper:
    """文件处理助手类"""

    @staticmethod
    def normalize_segment(value: str) -> str:
        """
        规范化路径片段（如分支名）

        Args:
            value: 原始字符串

        Returns:
            仅包含 [a-z0-9-] 的字符串，例如 "Feature/X" -> "feature-x"
        """
        value = _SEPARATOR_RE.sub("-", value.strip().lower())
        return _DISALLOWED_RE.sub("", value)

    @staticmethod
    def generate_unique_suffix() -> str:
        return uuid.uuid4().hex[:UNIQUE_SUFFIX_LENGTH]

    @staticmethod
    def generate_final_filename(original_filename: str, suffix: str | None = None) -> str:
        """
        生成最终存储文件名

        扩展名统一为 .jpg，并在扩展名前插入 8 位随机后缀，避免覆盖已有文件。

        Args:
            original_filename: 原始文件名，例如 "photo.png"
            suffix: 指定后缀（测试用），默认随机生成

        Returns:
            例如 "photo_1a2b3c4d.jpg"
        """
        stem = PurePosixPath(original_filename).stem
        unique_suffix = suffix or FileHelper.generate_unique_suffix()
        return f"{stem}_{unique_suffix}{FINAL_EXTENSION}"

    @staticmethod
    def build_storage_path(branch: str, date: str, final_filename: str) -> str:
        return f"{FileHelper.normalize_segment(branch)}/{date}/{final_filename}"

    @staticmethod
    def looks_like_html(body: bytes) -> bool:
        """
        判断响应体是否为 HTML 文档（通常是反爬虫挑战页）
        """
        text = body.decode("utf-8", errors="ignore").lower()
        return "<!doctype html" in text or "<html" in text

    @staticmethod
    def sniff_image_type(data: bytes) -> str | None:
        """根据文件头识别图片类型, 无法识别时返回 None"""
        if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
            return "image/webp"
        for signature, mime_type in IMAGE_SIGNATURES:
            if data.startswith(signature):
                return mime_type
        return None

"""
Content-type signatures used to route responses to the download path.
"""

CONTENT_TYPE_VIDEO = "video/"
CONTENT_TYPE_AUDIO = "audio/"
CONTENT_TYPE_IMAGE = "image/"
CONTENT_TYPE_PDF = "application/pdf"
CONTENT_TYPE_ZIP = "application/zip"
CONTENT_TYPE_MSWORD = "application/msword"
CONTENT_TYPE_EXCEL = "application/vnd.ms-excel"
CONTENT_TYPE_POWERPOINT = "application/vnd.ms-powerpoint"
CONTENT_TYPE_OPENXML = "application/vnd.openxmlformats-officedocument"
CONTENT_TYPE_OCTET_STREAM = "application/octet-stream"

DOWNLOADABLE_PREFIXES = (
    CONTENT_TYPE_VIDEO,
    CONTENT_TYPE_AUDIO,
    CONTENT_TYPE_IMAGE,
    CONTENT_TYPE_PDF,
    CONTENT_TYPE_ZIP,
    CONTENT_TYPE_MSWORD,
    CONTENT_TYPE_EXCEL,
    CONTENT_TYPE_POWERPOINT,
    CONTENT_TYPE_OPENXML,
)

JSON_SUFFIXES = ("/json", "+json")


def media_type(content_type: str | None) -> str:
    """Strips parameters such as `charset` and normalizes case."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def is_downloadable_content(content_type: str | None) -> bool:
    """Checks if the content type is associated with downloadable files."""
    kind = media_type(content_type)
    if not kind:
        return False
    return kind.startswith(DOWNLOADABLE_PREFIXES) or kind == CONTENT_TYPE_OCTET_STREAM


def is_json_content(content_type: str | None) -> bool:
    return media_type(content_type).endswith(JSON_SUFFIXES)

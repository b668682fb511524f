def is_safe_redirect_url(url: str) -> bool:
    """Only same-site relative paths such as ``/admin/dashboard`` are accepted"""
    if not url or not url.startswith("/"):
        return False
    # Protocol-relative (//evil.com)
    if url.startswith("//"):
        return False
    # /path@evil.com and /\evil.com tricks
    if "@" in url or "\\" in url:
        return False
    return True

import posixpath

utf8_bom = b"\xef\xbb\xbf"

def strip_utf8_bom(data: bytes) -> bytes:
    # removes the utf-8 byte order mark from byte data if present.
    if data.startswith(utf8_bom):
        return data[len(utf8_bom):]
    return data

def normalize_repo_path(path_str: str) -> str:
    # forward slashes, no leading "./", no trailing slash, ".." collapsed.
    cleaned = path_str.strip().replace("\\", "/")
    if not cleaned:
        return ""
    normalized = posixpath.normpath(cleaned)
    return "" if normalized == "." else normalized

def split_comma_list(raw_values) -> list[str]:
    # flattens "a, b" style values (a string or an iterable of them) into trimmed names.
    if not raw_values:
        return []
    if isinstance(raw_values, str):
        raw_values = [raw_values]
    items: list[str] = []
    for raw in raw_values:
        for item in str(raw).split(","):
            item = item.strip()
            if item and item not in items:
                items.append(item)
    return items

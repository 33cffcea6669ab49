from pathlib import Path

def is_csv_upload(filename: str | None, content_type: str | None) -> bool:
    if content_type == "text/csv":
        return True
    return Path(filename or "").suffix.lower() == ".csv"

def decode_upload(raw: bytes) -> str:
    # a leading BOM survives decoding and is stripped by the CSV parser
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1")

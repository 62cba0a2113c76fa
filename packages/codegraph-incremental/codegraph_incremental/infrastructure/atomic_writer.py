"""
Atomic JSON writer

Atomic update (temp -> rename). A crash mid-write leaves either the old file
or the new one, never a truncated file.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any


def write_json_atomic(target_path: Path, data: Any) -> None:
    """
    Atomic JSON write.

    순서:
    1. 같은 디렉토리에 temp 파일 생성
    2. Data 쓰기 + fsync
    3. os.replace (OS-level atomicity)
    """
    target_path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=target_path.parent, prefix=f".{target_path.name}.", suffix=".tmp", text=True)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())

        os.replace(tmp_path, target_path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise


def cleanup_temp_files(directory: Path) -> int:
    """
    Temp 파일 정리.

    Crash 후 남은 .tmp 파일들 제거.
    """
    removed = 0
    if not directory.exists():
        return removed
    for temp_file in directory.glob(".*.tmp"):
        try:
            temp_file.unlink()
            removed += 1
        except FileNotFoundError:
            pass
    return removed

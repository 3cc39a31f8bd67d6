"""ImageStore -- 笔记图片附件的文件系统存储

每张图片以随机 ULID 文件名写入独立目录，文件名即笔记中保存的引用。
删除为尽力而为：文件不存在或删除失败只记录日志。
"""

from collections.abc import Iterable
from pathlib import Path

import structlog
from ulid import ULID

from ..config import IMAGE_SUFFIX

log = structlog.get_logger()


class ImageStore:
    """笔记图片附件的文件系统存储"""

    def __init__(self, images_dir: Path, suffix: str = IMAGE_SUFFIX) -> None:
        self._images_dir = images_dir
        self._suffix = suffix

    @property
    def images_dir(self) -> Path:
        return self._images_dir

    def path_for(self, filename: str) -> Path:
        """获取图片文件路径"""
        return self._images_dir / filename

    def save(self, data: bytes) -> str | None:
        """写入图片并返回生成的文件名

        Returns:
            文件名；写入失败时返回 None
        """
        filename = f"{ULID()}{self._suffix}"
        try:
            self._images_dir.mkdir(parents=True, exist_ok=True)
            self.path_for(filename).write_bytes(data)
        except OSError as exc:
            log.warning("image_save_failed", filename=filename, error=str(exc))
            return None
        return filename

    def load(self, filename: str) -> bytes | None:
        """读取图片内容，文件不存在时返回 None"""
        try:
            return self.path_for(filename).read_bytes()
        except OSError:
            return None

    def delete(self, filenames: Iterable[str]) -> None:
        """删除图片文件，缺失的文件忽略"""
        for filename in filenames:
            try:
                self.path_for(filename).unlink(missing_ok=True)
            except OSError as exc:
                log.warning("image_delete_failed", filename=filename, error=str(exc))

    def clean_orphans(self, referenced_filenames: set[str]) -> list[str]:
        """删除目录中未被任何笔记引用的图片

        Args:
            referenced_filenames: 仍被笔记引用的文件名集合

        Returns:
            被删除的文件名列表
        """
        if not self._images_dir.is_dir():
            return []

        removed: list[str] = []
        for path in sorted(self._images_dir.iterdir()):
            if not path.is_file() or path.suffix != self._suffix:
                continue
            if path.name in referenced_filenames:
                continue
            try:
                path.unlink()
            except OSError as exc:
                log.warning("image_delete_failed", filename=path.name, error=str(exc))
                continue
            removed.append(path.name)

        if removed:
            log.info("orphan_images_cleaned", count=len(removed), filenames=removed)
        return removed

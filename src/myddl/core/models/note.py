"""Note Domain Model

content 是纯文本投影，用于搜索和列表预览；
rich_content 是展示层的富文本数据，对领域层不透明；
attachments 记录正文引用的图片文件，文件本身由 ImageStore 管理。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from ..config import NOTE_PREVIEW_LENGTH, NOTE_TITLE_PREVIEW_LENGTH
from .base import new_id, now

UNTITLED_NOTE = "无标题笔记"


class NoteAttachment(BaseModel):
    """笔记图片附件引用"""

    filename: str = Field(description="ImageStore 中的文件名")
    mime: str = Field(default="image/png", description="MIME 类型")
    size: int = Field(default=0, ge=0, description="文件大小（字节）")


class Note(BaseModel):
    """Note 数据模型"""

    id: str = Field(default_factory=new_id, description="唯一标识，ULID 格式")
    title: str = Field(default="", description="标题，可为空")
    content: str = Field(default="", description="纯文本内容")
    rich_content: bytes | None = Field(default=None, description="富文本数据")
    attachments: list[NoteAttachment] = Field(
        default_factory=list,
        description="图片附件引用",
    )
    is_pinned: bool = Field(default=False, description="是否置顶")
    created_at: datetime = Field(default_factory=now, description="创建时间")
    updated_at: datetime = Field(default_factory=now, description="更新时间")

    @property
    def display_title(self) -> str:
        """标题为空时取正文首行（截断），正文也为空时返回 UNTITLED_NOTE"""
        if self.title:
            return self.title
        first_line = self.content.splitlines()[0] if self.content else ""
        if not first_line:
            return UNTITLED_NOTE
        return first_line[:NOTE_TITLE_PREVIEW_LENGTH]

    @property
    def preview_text(self) -> str:
        return self.content.strip()[:NOTE_PREVIEW_LENGTH]

    @property
    def image_filenames(self) -> list[str]:
        return [a.filename for a in self.attachments]

    def content_differs(self, other: "Note") -> bool:
        """标题、正文或置顶状态是否与 other 不同"""
        return (
            self.title != other.title
            or self.content != other.content
            or self.is_pinned != other.is_pinned
        )

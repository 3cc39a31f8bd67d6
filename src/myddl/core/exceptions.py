"""MyDDL Core 异常体系

存储失败在持久化边界被记录并降级，不会以异常形式到达调用方；
这里只定义需要调用方感知的错误。
"""


class MyDDLError(Exception):
    """MyDDL Core 基础异常"""

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 调用方是否可以忽略该错误继续运行
        """
        super().__init__(message)
        self.recoverable = recoverable


class RequirementImportError(MyDDLError):
    """需求导入文档无法解析（JSON 非法或结构不符）

    抛出时尚未对任何需求做修改。
    """

    def __init__(self, reason: str, original_error: Exception | None = None) -> None:
        """
        Args:
            reason: 失败原因
            original_error: 原始解析异常
        """
        super().__init__(f"需求导入失败: {reason}", recoverable=True)
        self.reason = reason
        self.original_error = original_error


class StorageError(MyDDLError):
    """连内存数据库都无法初始化

    数据库文件不可用时 create_store_group 会退回内存数据库，
    只有退回也失败时才抛出；运行期读写失败只记录日志。
    """

    def __init__(self, db_path: str, original_error: Exception) -> None:
        super().__init__(
            f"数据库初始化失败: {db_path} -- {original_error}",
            recoverable=False,
        )
        self.db_path = db_path
        self.original_error = original_error

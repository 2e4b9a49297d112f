"""
服务层异常

handlers 层统一转换为 HTTP 状态码：
    - NotFoundError -> 404
    - ConflictError -> 409
    - TagValidationError -> 400
"""


class ServiceError(Exception):
    """服务层异常基类"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    """目标记录不存在（会话、物品、分类等）"""

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(ServiceError):
    """与已有数据冲突（例如同一分类下标签值重复）"""


class TagValidationError(ServiceError):
    """物品标签不合法（单选分类携带多个值、标签值不存在等）"""

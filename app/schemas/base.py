from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """프론트엔드 호환 스키마 (요청: camelCase/snake_case 모두 허용, 응답: camelCase)"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PaginationResponse(CamelModel):
    """페이지네이션 정보"""
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "PaginationResponse":
        total_pages = (total + limit - 1) // limit if limit else 0
        return cls(total=total, page=page, limit=limit, total_pages=total_pages)

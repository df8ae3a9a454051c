# storefront/pagination.py

import math
from dataclasses import dataclass
from typing import Sequence, Type

from fastapi import Query
from pydantic import BaseModel
from sqlalchemy import func
from sqlmodel import Session, select

from storefront.schemas import Pagination


@dataclass
class PageParams:
    page: int = 1
    limit: int = 10

    @property
    def offset(self) -> int:
        # Zero-based
        return (self.page - 1) * self.limit


def page_params(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
) -> PageParams:
    return PageParams(page=page, limit=limit)


def build_pagination(params: PageParams, total: int) -> Pagination:
    return Pagination(
        page=params.page,
        limit=params.limit,
        total=total,
        totalPages=math.ceil(total / params.limit),
    )


def paginate(session: Session, statement, params: PageParams, read_model: Type[BaseModel], options: Sequence = ()) -> dict:
    """
    Run `statement` for one page of rows plus a total count.
    Returns the {data, pagination} envelope every list endpoint answers with.
    Loader `options` only apply to the page query, not the count.
    """
    total = session.exec(select(func.count()).select_from(statement.order_by(None).subquery())).one()
    rows = session.exec(statement.options(*options).offset(params.offset).limit(params.limit)).all()

    return {
        "data": [read_model.model_validate(row).model_dump(mode="json") for row in rows],
        "pagination": build_pagination(params, total).model_dump(),
    }

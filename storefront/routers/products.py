# storefront/routers/products.py

"""Product catalogue: public reads, admin-only writes."""

from fastapi import APIRouter, Depends
from sqlmodel import col, select

from storefront.dependencies import AdminUser, DbSession, parse_id
from storefront.errors import NotFoundError
from storefront.models import Product
from storefront.pagination import PageParams, page_params, paginate
from storefront.schemas import ProductIn, ProductRead
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/products", tags=["products"])


def _get_product(session, product_id: str) -> Product:
    product = session.get(Product, parse_id(product_id, "Product"))
    if not product:
        raise NotFoundError("Product not found")
    return product


@router.get("")
def list_products(
    session: DbSession,
    search: str | None = None,
    params: PageParams = Depends(page_params),
):
    statement = select(Product).where(Product.is_active == True)  # noqa: E712

    if search:
        statement = statement.where(col(Product.name).ilike(f"%{search}%"))

    statement = statement.order_by(col(Product.created_at).desc())
    return paginate(session, statement, params, ProductRead)


@router.get("/{product_id}", response_model=ProductRead)
def get_product(product_id: str, session: DbSession):
    product = _get_product(session, product_id)
    if not product.is_active:
        raise NotFoundError("Product not found")
    return ProductRead.model_validate(product)


@router.post("", status_code=201)
def create_product(body: ProductIn, admin: AdminUser, session: DbSession):
    data = body.model_dump(exclude_none=True)
    data.setdefault("is_active", True)

    product = Product(**data)
    session.add(product)
    session.commit()
    session.refresh(product)

    logger.info("product.created", product_id=str(product.id), admin_id=str(admin.id))
    return {
        "message": "Product created successfully",
        "product": ProductRead.model_validate(product).model_dump(mode="json"),
    }


@router.put("/{product_id}")
def update_product(product_id: str, body: ProductIn, admin: AdminUser, session: DbSession):
    product = _get_product(session, product_id)

    for field, value in body.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(product, field, value)

    session.add(product)
    session.commit()
    session.refresh(product)

    logger.info("product.updated", product_id=str(product.id), admin_id=str(admin.id))
    return {
        "message": "Product updated successfully",
        "product": ProductRead.model_validate(product).model_dump(mode="json"),
    }


@router.delete("/{product_id}")
def delete_product(product_id: str, admin: AdminUser, session: DbSession):
    product = _get_product(session, product_id)

    product.is_active = False
    session.add(product)
    session.commit()

    logger.info("product.deactivated", product_id=str(product.id), admin_id=str(admin.id))
    return {"message": "Product deactivated successfully"}

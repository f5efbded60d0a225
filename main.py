import logging
from http import HTTPStatus
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional
from sqlalchemy import text
from sqlalchemy.orm import Session
from fastapi import APIRouter, Body, FastAPI, Depends, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from config import settings
from authentication import Identity, current_identity, optional_identity
from errors import InventoryError, ValidationFailed
from responses import created, envelope, modified
from services import AccountService, CategoryService, ProductService, SupplierService
from validation import format_errors
import models, schema, database

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

models.Base.metadata.create_all(bind=database.db_engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s %s", settings.PROJECT_NAME, settings.VERSION)
    if settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD:
        db = database.LocalSession()
        try:
            AccountService(db).seed_admin(settings.ADMIN_NAME, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)
        finally:
            db.close()
    yield
    logger.info("Shutting down %s", settings.PROJECT_NAME)


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Inventory management API: categories, suppliers and products.",
    docs_url=settings.DOCS_URL,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    lifespan=lifespan,
)
api = APIRouter(prefix=settings.API_PREFIX)


def body_of(model) -> dict:
    """OpenAPI request body for endpoints that validate their payload in the service layer."""
    return {"requestBody": {"required": True, "content": {"application/json": {"schema": model.model_json_schema()}}}}


# error handling
@app.exception_handler(InventoryError)
async def inventory_error_handler(request: Request, exc: InventoryError):
    return JSONResponse(status_code=exc.status_code, content=exc.payload(), headers=exc.headers)

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    failure = ValidationFailed(format_errors(exc.errors()))
    return JSONResponse(status_code=failure.status_code, content=failure.payload())

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    content = {"message": exc.detail}
    if not isinstance(exc.detail, str):
        # structured details (the health report) travel beside a plain message
        content = {"message": HTTPStatus(exc.status_code).phrase, "detail": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"message": "Server Error"})


# basic info
@app.get("/", tags=["System"])
def basic_info():
    return {
        "app_name": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "docs": settings.DOCS_URL,
        "health": "/health",
    }

# app health
@app.get("/health", tags=["System"])
def health_status(db: Session = Depends(database.obtain_db_session)):
    health_report = {
        "app_name": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "server_time": datetime.now(timezone.utc).isoformat(),
        "services": {
            "api": "online",
            "database": "unknown"
        }
    }

    try:
        db.execute(text("SELECT 1"))
        health_report["services"]["database"] = "online"
        return health_report
    except Exception as e:
        logger.error("Database health check failed: %s", e)
        health_report["services"]["database"] = "offline"
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=health_report
        )


# auth
@api.post("/register", tags=["Auth"], status_code=201, openapi_extra=body_of(schema.RegisterRequest))
def register_user(payload: Any = Body(None), db: Session = Depends(database.obtain_db_session),
                  identity: Optional[Identity] = Depends(optional_identity)):
    user = AccountService(db).register(identity, payload)
    return created("User registered successfully.", user=user)

@api.post("/login", tags=["Auth"], response_model=schema.Token, openapi_extra=body_of(schema.LoginRequest))
def login_handler(payload: Any = Body(None), db: Session = Depends(database.obtain_db_session)):
    return AccountService(db).login(payload)

@api.post("/logout", tags=["Auth"])
def logout_handler(db: Session = Depends(database.obtain_db_session), identity: Identity = Depends(current_identity)):
    AccountService(db).logout(identity)
    return envelope("Session closed.")


# categories
@api.get("/categories", tags=["Categories"])
def list_categories(db: Session = Depends(database.obtain_db_session), identity: Identity = Depends(current_identity)):
    return envelope("Categories found.", categories=CategoryService(db).list(identity))

@api.post("/categories", tags=["Categories"], status_code=201, openapi_extra=body_of(schema.CategoryCreate))
def create_category(payload: Any = Body(None), db: Session = Depends(database.obtain_db_session),
                    identity: Identity = Depends(current_identity)):
    category = CategoryService(db).create(identity, payload)
    return created("Category created successfully.", category=category)

@api.get("/categories/{category_id}", tags=["Categories"])
def read_category(category_id: int, db: Session = Depends(database.obtain_db_session),
                  identity: Identity = Depends(current_identity)):
    return modified("Category found.", category=CategoryService(db).get(identity, category_id))

@api.put("/categories/{category_id}", tags=["Categories"], openapi_extra=body_of(schema.CategoryCreate))
def update_category(category_id: int, payload: Any = Body(None), db: Session = Depends(database.obtain_db_session),
                    identity: Identity = Depends(current_identity)):
    category = CategoryService(db).update(identity, category_id, payload)
    return modified("Category updated successfully.", category=category)

@api.delete("/categories/{category_id}", tags=["Categories"])
def delete_category(category_id: int, db: Session = Depends(database.obtain_db_session),
                    identity: Identity = Depends(current_identity)):
    CategoryService(db).delete(identity, category_id)
    return envelope("Category deleted successfully.")


# suppliers
@api.get("/suppliers", tags=["Suppliers"])
def list_suppliers(db: Session = Depends(database.obtain_db_session), identity: Identity = Depends(current_identity)):
    return envelope("Suppliers found.", suppliers=SupplierService(db).list(identity))

@api.post("/suppliers", tags=["Suppliers"], status_code=201, openapi_extra=body_of(schema.SupplierCreate))
def create_supplier(payload: Any = Body(None), db: Session = Depends(database.obtain_db_session),
                    identity: Identity = Depends(current_identity)):
    supplier = SupplierService(db).create(identity, payload)
    return created("Supplier created successfully.", supplier=supplier)

@api.get("/suppliers/{supplier_id}", tags=["Suppliers"])
def read_supplier(supplier_id: int, db: Session = Depends(database.obtain_db_session),
                  identity: Identity = Depends(current_identity)):
    return modified("Supplier found.", supplier=SupplierService(db).get(identity, supplier_id))

@api.put("/suppliers/{supplier_id}", tags=["Suppliers"], openapi_extra=body_of(schema.SupplierUpdate))
def update_supplier(supplier_id: int, payload: Any = Body(None), db: Session = Depends(database.obtain_db_session),
                    identity: Identity = Depends(current_identity)):
    supplier = SupplierService(db).update(identity, supplier_id, payload)
    return modified("Supplier updated successfully.", supplier=supplier)

@api.delete("/suppliers/{supplier_id}", tags=["Suppliers"])
def delete_supplier(supplier_id: int, db: Session = Depends(database.obtain_db_session),
                    identity: Identity = Depends(current_identity)):
    SupplierService(db).delete(identity, supplier_id)
    return envelope("Supplier deleted successfully.")


# products
@api.get("/products", tags=["Products"])
def list_products(db: Session = Depends(database.obtain_db_session), identity: Identity = Depends(current_identity)):
    return envelope("Products found.", products=ProductService(db).list(identity))

@api.post("/products", tags=["Products"], status_code=201, openapi_extra=body_of(schema.ProductCreate))
def create_product(payload: Any = Body(None), db: Session = Depends(database.obtain_db_session),
                   identity: Identity = Depends(current_identity)):
    product = ProductService(db).create(identity, payload)
    return created("Product created successfully.", product=product)

@api.get("/products/{product_id}", tags=["Products"])
def read_product(product_id: int, db: Session = Depends(database.obtain_db_session),
                 identity: Identity = Depends(current_identity)):
    return modified("Product found.", product=ProductService(db).get(identity, product_id))

@api.put("/products/{product_id}", tags=["Products"], openapi_extra=body_of(schema.ProductCreate))
def update_product(product_id: int, payload: Any = Body(None), db: Session = Depends(database.obtain_db_session),
                   identity: Identity = Depends(current_identity)):
    product = ProductService(db).update(identity, product_id, payload)
    return modified("Product updated successfully.", product=product)

@api.delete("/products/{product_id}", tags=["Products"])
def delete_product(product_id: int, db: Session = Depends(database.obtain_db_session),
                   identity: Identity = Depends(current_identity)):
    ProductService(db).delete(identity, product_id)
    return envelope("Product deleted successfully.")


app.include_router(api)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, log_level=settings.LOG_LEVEL.lower())

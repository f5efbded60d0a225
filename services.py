import logging
from typing import Any, Dict, List, Optional, Type
from pydantic import BaseModel
from sqlalchemy.orm import Session
from config import settings
from authentication import (ADMIN_ROLE, USER_ROLE, Access, Identity, authorize,
                            generate_access_token, get_password_hash, verify_password)
from database import Base
from errors import Conflict, InvalidCredentials, NotFound, ValidationFailed
from validation import check_references, validate_payload, value_taken
import models, schema

logger = logging.getLogger(__name__)


class ResourceService:
    """CRUD over one table, with the admin guard and validation applied to every write.

    Subclasses describe the table (`model`), the payload schemas and the
    foreign keys to check (`references`, in checking order).
    """
    model: Type[Base] = None
    create_schema: Type[BaseModel] = None
    update_schema: Optional[Type[BaseModel]] = None
    output_schema: Type[BaseModel] = None
    list_schema: Optional[Type[BaseModel]] = None
    references: Dict[str, Type[Base]] = {}
    label = "Resource"
    plural = "resources"

    def __init__(self, db: Session):
        self.db = db

    def _find(self, resource_id: int):
        row = self.db.query(self.model).filter(self.model.id == resource_id).first()
        if row is None:
            raise NotFound(f"{self.label} not found.")
        return row

    def _dump(self, row) -> BaseModel:
        return self.output_schema.model_validate(row)

    def _query_all(self) -> list:
        return self.db.query(self.model).order_by(self.model.id).all()

    def _check_unique(self, values: Dict[str, Any], instance=None) -> None:
        pass

    def _validate(self, payload: Any, instance=None) -> Dict[str, Any]:
        payload_schema = self.create_schema
        if instance is not None and self.update_schema is not None:
            payload_schema = self.update_schema
        values = validate_payload(payload_schema, payload).model_dump()
        check_references(self.db, values, self.references)
        self._check_unique(values, instance)
        return values

    def list(self, identity: Identity) -> List[BaseModel]:
        authorize(identity, Access.AUTHENTICATED)
        rows = self._query_all()
        if not rows:
            raise NotFound(f"No {self.plural} found, please register at least one.")
        listed = self.list_schema or self.output_schema
        return [listed.model_validate(row) for row in rows]

    def get(self, identity: Identity, resource_id: int) -> BaseModel:
        authorize(identity, Access.AUTHENTICATED)
        return self._dump(self._find(resource_id))

    def create(self, identity: Identity, payload: Any) -> BaseModel:
        authorize(identity, Access.ADMIN)
        values = self._validate(payload)
        row = self.model(**values)
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        logger.info("User %s created %s %s", identity.user.id, self.label.lower(), row.id)
        return self._dump(row)

    def update(self, identity: Identity, resource_id: int, payload: Any) -> BaseModel:
        authorize(identity, Access.ADMIN)
        row = self._find(resource_id)
        values = self._validate(payload, instance=row)
        for key, value in values.items():
            setattr(row, key, value)
        self.db.commit()
        self.db.refresh(row)
        logger.info("User %s updated %s %s", identity.user.id, self.label.lower(), row.id)
        return self._dump(row)

    def delete(self, identity: Identity, resource_id: int) -> None:
        authorize(identity, Access.ADMIN)
        row = self._find(resource_id)
        self.db.delete(row)
        self.db.commit()
        logger.info("User %s deleted %s %s", identity.user.id, self.label.lower(), resource_id)


class CategoryService(ResourceService):
    model = models.Category
    create_schema = schema.CategoryCreate
    output_schema = schema.Category
    label = "Category"
    plural = "categories"


class SupplierService(ResourceService):
    model = models.Supplier
    create_schema = schema.SupplierCreate
    update_schema = schema.SupplierUpdate
    output_schema = schema.Supplier
    label = "Supplier"
    plural = "suppliers"

    def _check_unique(self, values, instance=None):
        email = values.get("email")
        if email is None:
            return
        # legacy clients expect the row being updated to count as a duplicate of itself
        exclude_id = None
        if instance is not None and not settings.LEGACY_STATUS_CODES:
            exclude_id = instance.id
        if value_taken(self.db, models.Supplier, "email", email, exclude_id=exclude_id):
            raise Conflict("The email is already registered.")


class ProductService(ResourceService):
    model = models.Product
    create_schema = schema.ProductCreate
    output_schema = schema.Product
    list_schema = schema.ProductListItem
    references = {"category_id": models.Category, "supplier_id": models.Supplier}
    label = "Product"
    plural = "products"

    def _query_all(self):
        Product, Category, Supplier = models.Product, models.Category, models.Supplier
        # outer joins keep products whose category or supplier has been deleted
        return (
            self.db.query(
                Product.id,
                Product.category_id,
                Category.name.label("namecategory"),
                Product.supplier_id,
                Supplier.name.label("namesupplier"),
                Product.name,
                Product.description,
                Product.price,
                Product.stock,
            )
            .outerjoin(Category, Product.category_id == Category.id)
            .outerjoin(Supplier, Product.supplier_id == Supplier.id)
            .order_by(Product.name.asc())
            .all()
        )


class AccountService:
    """Registration, login and logout."""

    def __init__(self, db: Session):
        self.db = db

    def _create_user(self, name: str, email: str, password: str, role: str) -> models.User:
        user = models.User(name=name, email=email, hashed_password=get_password_hash(password), role=role)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def register(self, identity: Optional[Identity], payload: Any) -> schema.User:
        authorize(identity, Access.PUBLIC)
        data = validate_payload(schema.RegisterRequest, payload)
        if value_taken(self.db, models.User, "email", data.email):
            raise ValidationFailed({"email": ["The email has already been taken."]})

        # only an authenticated admin may choose the role of a new account
        role = USER_ROLE
        if identity is not None and identity.is_admin and data.role:
            role = data.role

        user = self._create_user(data.name, data.email, data.password, role)
        logger.info("Registered user %s with role %s", user.id, user.role)
        return schema.User.model_validate(user)

    def login(self, payload: Any) -> schema.Token:
        data = validate_payload(schema.LoginRequest, payload)
        user = self.db.query(models.User).filter(models.User.email == data.email).first()
        if not user or not verify_password(data.password, user.hashed_password):
            logger.info("Failed login for %s", data.email)
            raise InvalidCredentials()
        access_token = generate_access_token(self.db, user)
        self.db.commit()
        logger.info("User %s logged in", user.id)
        return schema.Token(access_token=access_token, token_type="Bearer")

    def logout(self, identity: Identity) -> None:
        authorize(identity, Access.AUTHENTICATED)
        self.db.delete(identity.token)
        self.db.commit()
        logger.info("User %s logged out", identity.user.id)

    def seed_admin(self, name: str, email: str, password: str) -> Optional[models.User]:
        """Create the bootstrap administrator unless the email is already registered."""
        if value_taken(self.db, models.User, "email", email):
            return None
        user = self._create_user(name, email, password, ADMIN_ROLE)
        logger.info("Created bootstrap administrator %s", email)
        return user

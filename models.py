from sqlalchemy import Column, Integer, String, ForeignKey, Float, DateTime, Text, func
from sqlalchemy.orm import relationship
from database import Base

class TimestampMixin:
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

class User(TimestampMixin, Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False, default="user")
    tokens = relationship("Token", back_populates="user", cascade="all, delete-orphan")

class Token(Base):
    __tablename__ = "tokens"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    jti = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False, default="auth_token")
    created_at = Column(DateTime, server_default=func.now())
    user = relationship("User", back_populates="tokens")

class Category(TimestampMixin, Base):
    __tablename__ = "categories"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, index=True, nullable=False)
    description = Column(Text, nullable=False)
    # deleting a category leaves its products untouched
    products = relationship("Product", back_populates="category", passive_deletes="all")

class Supplier(TimestampMixin, Base):
    __tablename__ = "suppliers"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, index=True, nullable=False)
    # uniqueness is checked by the service layer only
    email = Column(String, nullable=True)
    phone = Column(String, nullable=False)
    address = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    products = relationship("Product", back_populates="supplier", passive_deletes="all")

class Product(TimestampMixin, Base):
    __tablename__ = "products"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, index=True, nullable=False)
    description = Column(Text, nullable=False)
    price = Column(Float, nullable=False)
    stock = Column(Integer, nullable=False)

    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=False)

    category = relationship("Category", back_populates="products")
    supplier = relationship("Supplier", back_populates="products")

    @property
    def namecategory(self):
        return self.category.name if self.category is not None else None

    @property
    def namesupplier(self):
        return self.supplier.name if self.supplier is not None else None

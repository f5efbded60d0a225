from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, constr
from typing import Literal, Optional

RequiredStr = constr(strip_whitespace=True, min_length=1)

# --- Auth Schemas ---
class Token(BaseModel):
    access_token: str
    token_type: str = "Bearer"

class RegisterRequest(BaseModel):
    name: RequiredStr
    email: EmailStr
    password: constr(min_length=1)
    role: Optional[Literal["admin", "user"]] = None

class LoginRequest(BaseModel):
    email: EmailStr
    password: constr(min_length=1)

class User(BaseModel):
    id: int
    name: str
    email: str
    role: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    class Config:
        from_attributes = True

# --- Category Schemas ---
class CategoryCreate(BaseModel):
    name: RequiredStr
    description: RequiredStr

class Category(CategoryCreate):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    class Config:
        from_attributes = True

# --- Supplier Schemas ---
class SupplierCreate(BaseModel):
    name: RequiredStr
    email: Optional[str] = None
    phone: RequiredStr
    address: RequiredStr
    description: RequiredStr

class SupplierUpdate(SupplierCreate):
    email: RequiredStr

class Supplier(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    phone: str
    address: str
    description: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    class Config:
        from_attributes = True

# --- Product Schemas ---
class ProductCreate(BaseModel):
    category_id: int
    supplier_id: int
    name: RequiredStr
    description: RequiredStr
    price: float = Field(gt=0)
    stock: int = Field(gt=0)

class Product(ProductCreate):
    id: int
    namecategory: Optional[str] = None
    namesupplier: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    class Config:
        from_attributes = True

class ProductListItem(BaseModel):
    id: int
    category_id: int
    namecategory: Optional[str] = None
    supplier_id: int
    namesupplier: Optional[str] = None
    name: str
    description: str
    price: float
    stock: int
    class Config:
        from_attributes = True

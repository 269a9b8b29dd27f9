from decimal import Decimal
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


def parse_keywords(value: Union[str, List[str], None]) -> List[str]:
    """Accept "tesco, rema" or ["tesco", " rema "]; drop blanks."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [k.strip() for k in value if k and k.strip()]


class LinkBankRequest(BaseModel):
    institution_id: str = Field(min_length=1)

class SyncRequest(BaseModel):
    institution_id: Optional[str] = None

class AddManualAccount(BaseModel):
    bank_name: str = Field(min_length=1)
    account_name: str = Field(min_length=1)
    owner_name: str = Field(min_length=1)
    starting_balance: Decimal
    type: Literal["debit", "credit"]
    currency: str = Field("NOK", min_length=3, max_length=3)


class CreateCategory(BaseModel):
    name: str = Field(min_length=1)
    color: Optional[str] = None
    keywords: List[str] = []
    category_group_id: Optional[int] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value

    @field_validator("keywords", mode="before")
    @classmethod
    def _split_keywords(cls, value):
        return parse_keywords(value)

class UpdateCategory(BaseModel):
    name: Optional[str] = None
    color: Optional[str] = None
    keywords: Optional[List[str]] = None
    category_group_id: Optional[int] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value

    @field_validator("keywords", mode="before")
    @classmethod
    def _split_keywords(cls, value):
        if value is None:
            return None
        return parse_keywords(value)


class SetCategoryRequest(BaseModel):
    category_id: Optional[int] = None

class TransactionCategoryAssignment(BaseModel):
    transaction_id: int
    category_id: Optional[int] = None

class SetCategoriesRequest(BaseModel):
    transactions: List[TransactionCategoryAssignment]

class SpendingTypeRequest(BaseModel):
    value: Optional[Literal["fixed", "variable"]] = None

class WantOrNeedRequest(BaseModel):
    value: Optional[Literal["want", "need"]] = None


class CreateBudget(BaseModel):
    name: str = Field(min_length=2)

class CreateCategoryGroup(BaseModel):
    name: str = Field(min_length=2)

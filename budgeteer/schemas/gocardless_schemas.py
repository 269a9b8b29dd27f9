"""Response shapes of the GoCardless Bank Account Data API (v2).

Only the fields the app reads are declared; everything else is ignored.
"""
from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RemoteModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class TokenPair(RemoteModel):
    access: str
    access_expires: int
    refresh: Optional[str] = None
    refresh_expires: Optional[int] = None


class Institution(RemoteModel):
    id: str
    name: str
    bic: Optional[str] = None
    logo: Optional[str] = None
    countries: List[str] = []
    transaction_total_days: Optional[int] = None


# CR created, GC giving consent, UA undergoing authentication, RJ rejected,
# SA selecting accounts, GA granting access, LN linked, EX expired
REQUISITION_LINKED = "LN"
REQUISITION_DEAD = ("EX", "RJ")


class Requisition(RemoteModel):
    id: str
    status: str
    link: Optional[str] = None
    institution_id: Optional[str] = None
    redirect: Optional[str] = None
    reference: Optional[str] = None
    accounts: List[str] = []

    @property
    def is_linked(self) -> bool:
        return self.status == REQUISITION_LINKED

    @property
    def is_dead(self) -> bool:
        return self.status in REQUISITION_DEAD


class Amount(RemoteModel):
    amount: str
    currency: str


class AccountInfo(RemoteModel):
    resource_id: Optional[str] = Field(None, alias="resourceId")
    iban: Optional[str] = None
    bban: Optional[str] = None
    currency: Optional[str] = None
    name: Optional[str] = None
    owner_name: Optional[str] = Field(None, alias="ownerName")
    product: Optional[str] = None


class AccountDetails(RemoteModel):
    account: AccountInfo


class Balance(RemoteModel):
    balance_amount: Amount = Field(alias="balanceAmount")
    balance_type: Optional[str] = Field(None, alias="balanceType")
    reference_date: Optional[date] = Field(None, alias="referenceDate")


class AccountBalances(RemoteModel):
    balances: List[Balance] = []


class CounterpartyAccount(RemoteModel):
    iban: Optional[str] = None
    bban: Optional[str] = None


class CurrencyExchange(RemoteModel):
    exchange_rate: Optional[str] = Field(None, alias="exchangeRate")
    source_currency: Optional[str] = Field(None, alias="sourceCurrency")


class RemoteTransaction(RemoteModel):
    transaction_id: Optional[str] = Field(None, alias="transactionId")
    internal_transaction_id: Optional[str] = Field(None, alias="internalTransactionId")
    booking_date: Optional[date] = Field(None, alias="bookingDate")
    value_date: Optional[date] = Field(None, alias="valueDate")
    transaction_amount: Amount = Field(alias="transactionAmount")
    creditor_name: Optional[str] = Field(None, alias="creditorName")
    creditor_account: Optional[CounterpartyAccount] = Field(None, alias="creditorAccount")
    debtor_name: Optional[str] = Field(None, alias="debtorName")
    debtor_account: Optional[CounterpartyAccount] = Field(None, alias="debtorAccount")
    additional_information: Optional[str] = Field(None, alias="additionalInformation")
    remittance_information_unstructured: Optional[str] = Field(None, alias="remittanceInformationUnstructured")
    remittance_information_unstructured_array: List[str] = Field([], alias="remittanceInformationUnstructuredArray")
    currency_exchange: List[CurrencyExchange] = Field([], alias="currencyExchange")

    @field_validator("currency_exchange", mode="before")
    @classmethod
    def _wrap_single_exchange(cls, value):
        # some banks send a single object instead of a list
        if isinstance(value, dict):
            return [value]
        return value or []

    @property
    def description(self) -> Optional[str]:
        if self.additional_information:
            return self.additional_information
        if self.remittance_information_unstructured:
            return self.remittance_information_unstructured
        if self.remittance_information_unstructured_array:
            return " ".join(self.remittance_information_unstructured_array)
        return None


class AccountTransactions(RemoteModel):
    booked: List[RemoteTransaction] = []
    pending: List[RemoteTransaction] = []

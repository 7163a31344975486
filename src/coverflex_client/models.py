"""Typed projections of the Coverflex employee API payloads.

Resource fields have defaults so that a field the API drops does not turn a
usable response into a decode error. Unknown fields are ignored. The OTP
challenge is the exception: without the phone hint a 202 is not a challenge.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class OtpChallenge(BaseModel):
    phone_last_digits: str


class SessionTokens(BaseModel):
    """Body of a 201 from ``/sessions`` or ``/sessions/trust-user-agent``."""

    token: str = ""
    refresh_token: str = ""
    user_agent_token: Optional[str] = None


class RenewedTokens(BaseModel):
    access_token: str = ""
    refresh_token: str = ""


class RenewResponse(BaseModel):
    data: RenewedTokens = Field(default_factory=RenewedTokens)


# benefits

class Money(BaseModel):
    amount: int = 0
    currency: str = ""


class BenefitLimits(BaseModel):
    monthly: Optional[Money] = None
    yearly: Optional[Money] = None


class Product(BaseModel):
    id: str = ""
    name: str = ""
    slug: str = ""
    description: str = ""
    status: str = ""
    type: str = ""


class Benefit(BaseModel):
    id: str = ""
    name: str = ""
    slug: str = ""
    description: Optional[str] = None
    limits: BenefitLimits = Field(default_factory=BenefitLimits)
    products: List[Product] = Field(default_factory=list)


class BenefitsResponse(BaseModel):
    benefits: List[Benefit] = Field(default_factory=list)


# cards

class Card(BaseModel):
    id: str = ""
    activated_at: Optional[str] = None
    expiration_date: str = ""
    format: str = ""
    holder_company_name: str = ""
    holder_name: str = ""
    is_expiring: bool = False
    is_plastic_requested: bool = False
    network: str = ""
    owner_id: str = ""
    pan_last_digits: str = ""
    provider_id: str = ""
    status: str = ""
    version: str = ""


class CardsResponse(BaseModel):
    cards: List[Card] = Field(default_factory=list)


# company

class Address(BaseModel):
    address_line_1: str = ""
    address_line_2: Optional[str] = None
    city: str = ""
    country: str = ""
    district: str = ""
    type: str = ""
    zipcode: str = ""


class Market(BaseModel):
    languages: List[str] = Field(default_factory=list)
    slug: str = ""


class CompanySettings(BaseModel):
    card_request_employee_permission: str = ""
    card_request_format: str = ""
    card_request_strategy: str = ""
    card_shipping_strategy: str = ""
    include_employee_number_in_reports: bool = False
    kinship_degree_proof_required: bool = False
    plan: str = ""
    savings_employee_enabled: bool = False


class TaxId(BaseModel):
    type: str = ""
    value: str = ""


class Company(BaseModel):
    id: str = ""
    addresses: List[Address] = Field(default_factory=list)
    card_display_name: str = ""
    legal_name: str = ""
    logo_uri: Optional[str] = None
    market: Market = Field(default_factory=Market)
    name: str = ""
    settings: CompanySettings = Field(default_factory=CompanySettings)
    tax_id: TaxId = Field(default_factory=TaxId)


class CompensationConfig(BaseModel):
    has_social_benefits: bool = False


class CompanyResponse(BaseModel):
    company: Company = Field(default_factory=Company)
    compensation_config: CompensationConfig = Field(default_factory=CompensationConfig)


# compensation

class Attribution(BaseModel):
    id: str = ""
    slug: str = ""
    balance: Money = Field(default_factory=Money)


class CompensationBenefit(BaseModel):
    slug: str = ""
    balance: Money = Field(default_factory=Money)


class CompensationSummary(BaseModel):
    attributions: List[Attribution] = Field(default_factory=list)
    benefits: List[CompensationBenefit] = Field(default_factory=list)
    renewal_date: str = ""
    status: str = ""


class CompensationResponse(BaseModel):
    summary: CompensationSummary = Field(default_factory=CompensationSummary)


# family

class FamilyMember(BaseModel):
    id: str = ""
    full_name: str = ""
    short_name: str = ""
    birth_date: str = ""
    relation_type: str = ""
    gender: str = ""


class FamilyResponse(BaseModel):
    members: List[FamilyMember] = Field(default_factory=list)

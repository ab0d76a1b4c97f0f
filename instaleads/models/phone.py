"""Phone extraction models."""

from enum import Enum

from instaleads.models.base import CamelModel


class PhoneConfidence(str, Enum):
    """How directly a phone candidate is tied to a contact mechanism."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def weight(self) -> int:
        return _CONFIDENCE_WEIGHT[self]


_CONFIDENCE_WEIGHT = {
    PhoneConfidence.LOW: 1,
    PhoneConfidence.MEDIUM: 2,
    PhoneConfidence.HIGH: 3,
}


class PhoneDetail(CamelModel):
    """One normalised phone number with its provenance."""

    phone_pt_br: str
    phone_e164: str
    confidence: PhoneConfidence
    sources: list[str]


class PhoneExtraction(CamelModel):
    """Everything the phone engine found for one profile."""

    phones_pt_br: list[str] = []
    phones_e164: list[str] = []
    phones_details: list[PhoneDetail] = []
    primary_phone_pt_br: str | None = None
    primary_phone_e164: str | None = None
    primary_phone_confidence: PhoneConfidence | None = None

    @property
    def primary(self) -> PhoneDetail | None:
        for detail in self.phones_details:
            if detail.phone_e164 == self.primary_phone_e164:
                return detail
        return None

"""
Country banking profiles — banks, withdrawal form fields and settlement currency.

Read-only reference data for step 3 of the investor onboarding wizard.
Profiles are keyed by the Country enum; free-form country names from the
personal-info step are resolved through `get_profile()`.
"""

from dataclasses import dataclass
from enum import Enum


class Country(str, Enum):
    MEXICO = "Mexico"
    FRANCE = "France"
    SWITZERLAND = "Switzerland"
    SAUDI_ARABIA = "Saudi Arabia"
    UAE = "United Arab Emirates"


DEFAULT_COUNTRY = Country.MEXICO
FALLBACK_CURRENCY = "USD"
ACCOUNT_HOLDER_FIELD = "account_holder_name"


@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    label: str
    kind: str = "text"          # "text" | "tel"
    required: bool = True
    max_length: int | None = None


@dataclass(frozen=True)
class CountryBankingProfile:
    country: Country
    banks: tuple[str, ...]
    fields: tuple[FieldDescriptor, ...]
    currency: str

    @property
    def required_fields(self) -> tuple[FieldDescriptor, ...]:
        return tuple(f for f in self.fields if f.required)

    def field(self, name: str) -> FieldDescriptor | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None


# ── Shared field descriptors ───────────────────────────────

_HOLDER = FieldDescriptor(ACCOUNT_HOLDER_FIELD, "Account Holder Name")
_PHONE = FieldDescriptor("phone_number", "Phone Number", kind="tel")
_ADDRESS = FieldDescriptor("address", "Address")
_BIC = FieldDescriptor("bic", "BIC/SWIFT Code", max_length=11)
_SWIFT = FieldDescriptor("swift_code", "SWIFT Code", max_length=11)


def _iban(max_length: int) -> FieldDescriptor:
    return FieldDescriptor("iban", "IBAN", max_length=max_length)


# ── Profiles ───────────────────────────────────────────────

PROFILES: dict[Country, CountryBankingProfile] = {
    Country.MEXICO: CountryBankingProfile(
        country=Country.MEXICO,
        banks=(
            "Santander México", "Banorte", "BBVA México", "Banamex (Citibanamex)",
            "HSBC México", "Scotiabank México", "Banco Azteca", "Inbursa",
            "Banco del Bajío", "Banregio",
        ),
        fields=(
            _HOLDER,
            FieldDescriptor("clabe", "CLABE (18 digits)", max_length=18),
            FieldDescriptor("bank_branch", "Bank Branch", required=False),
            _PHONE,
        ),
        currency="MXN",
    ),
    Country.FRANCE: CountryBankingProfile(
        country=Country.FRANCE,
        banks=(
            "BNP Paribas", "Crédit Agricole", "Société Générale", "Crédit Mutuel",
            "BPCE (Banque Populaire)", "La Banque Postale", "Crédit du Nord",
            "HSBC France", "ING Direct France", "Boursorama Banque",
        ),
        fields=(_HOLDER, _iban(34), _BIC, _ADDRESS),
        currency="EUR",
    ),
    Country.SWITZERLAND: CountryBankingProfile(
        country=Country.SWITZERLAND,
        banks=(
            "UBS", "Credit Suisse", "Julius Baer", "Pictet", "Lombard Odier",
            "Banque Cantonale Vaudois", "Zürcher Kantonalbank", "PostFinance",
            "Raiffeisen Switzerland", "Migros Bank",
        ),
        fields=(_HOLDER, _iban(21), _BIC, _ADDRESS),
        currency="CHF",
    ),
    Country.SAUDI_ARABIA: CountryBankingProfile(
        country=Country.SAUDI_ARABIA,
        banks=(
            "Saudi National Bank (SNB)", "Al Rajhi Bank", "Riyad Bank",
            "Banque Saudi Fransi", "Saudi British Bank (SABB)", "Arab National Bank",
            "Bank AlJazira", "Alinma Bank", "Bank Albilad", "Saudi Investment Bank",
        ),
        fields=(_HOLDER, _iban(24), _SWIFT, _PHONE),
        currency="SAR",
    ),
    Country.UAE: CountryBankingProfile(
        country=Country.UAE,
        banks=(
            "Emirates NBD", "First Abu Dhabi Bank (FAB)",
            "Abu Dhabi Commercial Bank (ADCB)", "Dubai Islamic Bank", "Mashreq Bank",
            "Commercial Bank of Dubai", "Union National Bank", "Ajman Bank",
            "Bank of Sharjah", "Fujairah National Bank",
        ),
        fields=(
            _HOLDER,
            _iban(23),
            _SWIFT,
            FieldDescriptor("emirates_id", "Emirates ID"),
            _PHONE,
        ),
        currency="AED",
    ),
}


def resolve_country(name: str | None) -> Country | None:
    """Map a free-form country name onto the Country enum (case-insensitive)."""
    if not name:
        return None
    cleaned = name.strip().lower()
    for country in Country:
        if country.value.lower() == cleaned:
            return country
    return None


def get_profile(country: str | Country | None) -> CountryBankingProfile | None:
    """Banking profile for a country, or None when banking is unsupported there."""
    if not isinstance(country, Country):
        country = resolve_country(country)
    if country is None:
        return None
    return PROFILES[country]


def banks_for(country: str | Country | None) -> tuple[str, ...]:
    profile = get_profile(country)
    return profile.banks if profile else ()


def currency_for(country: str | Country | None) -> str:
    profile = get_profile(country)
    return profile.currency if profile else FALLBACK_CURRENCY

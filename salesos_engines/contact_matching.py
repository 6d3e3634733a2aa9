"""
salesos_engines.contact_matching -- Fuzzy scoring of accounting contacts.

Responsibility:
    Score and rank accounting-platform contacts against a free-text query
    so buyers and suppliers can be picked from a search box.  Also
    normalises raw platform contact records and classifies each contact as
    buyer and/or supplier once, when it is built.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The contact list comes
    from ``salesos_services.contact_directory``.

Invariants enforced:
    - Queries shorter than 2 characters after trimming return no results.
    - Field score ladder: exact 100, prefix 90, word-boundary substring 80,
      other substring 70, all tokens of a multi-token query present 75,
      edit-distance fallback max(50 - 10 * distance, 20) when the distance
      is within 30% of the query length, otherwise 0.
    - A contact's score is its best field score; the first field reaching
      that score is the one reported.  Scores below 20 are dropped.
    - Results are sorted by score descending; ties keep input order.
    - Buyer/supplier classification is computed at construction and never
      per search.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from salesos_kernel.logging_config import get_logger
from salesos_engines.tracer import traced_engine

logger = get_logger("engines.contact_matching")

MIN_QUERY_LENGTH = 2
SCORE_THRESHOLD = 20
DEFAULT_SEARCH_LIMIT = 15

SCORE_EXACT = 100
SCORE_PREFIX = 90
SCORE_WORD_BOUNDARY = 80
SCORE_ALL_TOKENS = 75
SCORE_SUBSTRING = 70
FUZZY_BASE = 50
FUZZY_STEP = 10
FUZZY_FLOOR = 20
FUZZY_TOLERANCE = 0.3
FUZZY_PREFIX_SLACK = 5


@dataclass(frozen=True)
class ContactPerson:
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None

    @property
    def full_name(self) -> str | None:
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return None


def classifies_as_buyer(is_customer: bool, default_sales_code: str | None) -> bool:
    """Customer flag, or a default sales account code configured."""
    return bool(is_customer) or bool(default_sales_code)


def classifies_as_supplier(is_supplier: bool, default_purchase_code: str | None) -> bool:
    """Supplier flag, or a default purchase account code configured."""
    return bool(is_supplier) or bool(default_purchase_code)


@dataclass(frozen=True)
class ExtendedContact:
    """A contact from the accounting platform, ready for local search.

    ``buyer`` and ``supplier`` are derived from the raw flags and default
    account codes when the contact is built.
    """

    contact_id: str
    name: str
    email: str | None = None
    account_number: str | None = None
    reference: str | None = None
    is_customer: bool = False
    is_supplier: bool = False
    default_purchase_code: str | None = None
    default_sales_code: str | None = None
    contact_persons: tuple[ContactPerson, ...] = ()
    buyer: bool = field(init=False)
    supplier: bool = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "buyer", classifies_as_buyer(self.is_customer, self.default_sales_code)
        )
        object.__setattr__(
            self,
            "supplier",
            classifies_as_supplier(self.is_supplier, self.default_purchase_code),
        )

    def searchable_fields(self) -> Iterator[tuple[str, str | None]]:
        """(label, value) pairs in scoring order."""
        yield "name", self.name
        yield "email", self.email
        yield "accountNumber", self.account_number
        yield "reference", self.reference
        for person in self.contact_persons:
            yield "contactPerson.firstName", person.first_name
            yield "contactPerson.lastName", person.last_name
            yield "contactPerson.email", person.email
            if person.full_name is not None:
                yield "contactPerson.fullName", person.full_name


@dataclass(frozen=True)
class ScoredResult:
    contact: ExtendedContact
    score: int
    matched_field: str


def normalize_contact(raw: Mapping[str, Any]) -> ExtendedContact:
    """Build an ``ExtendedContact`` from a platform contact record.

    Accepts the platform's PascalCase keys (``ContactID``, ``Name``,
    ``EmailAddress``, ``ContactNumber``, ``Sales.DefaultAccountCode`` ...).
    """
    persons = tuple(
        ContactPerson(
            first_name=person.get("FirstName") or None,
            last_name=person.get("LastName") or None,
            email=person.get("EmailAddress") or None,
        )
        for person in raw.get("ContactPersons") or ()
    )
    purchases = raw.get("Purchases") or {}
    sales = raw.get("Sales") or {}

    return ExtendedContact(
        contact_id=str(raw.get("ContactID") or ""),
        name=str(raw.get("Name") or ""),
        email=raw.get("EmailAddress") or None,
        account_number=raw.get("AccountNumber") or None,
        reference=raw.get("ContactNumber") or None,
        is_customer=bool(raw.get("IsCustomer")),
        is_supplier=bool(raw.get("IsSupplier")),
        default_purchase_code=purchases.get("DefaultAccountCode") or None,
        default_sales_code=sales.get("DefaultAccountCode") or None,
        contact_persons=persons,
    )


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance (insert, delete, substitute each cost 1)."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(min(previous[j], current[j - 1], previous[j - 1]) + 1)
        previous = current
    return previous[-1]


def score_field(query: str, field_value: str | None) -> int:
    """Score one field against the query, 0..100."""
    if not field_value or not query:
        return 0

    q = query.lower().strip()
    value = field_value.lower().strip()
    if not value:
        return 0

    if value == q:
        return SCORE_EXACT
    if value.startswith(q):
        return SCORE_PREFIX
    if q in value:
        if re.search(r"\b" + re.escape(q), value, re.ASCII):
            return SCORE_WORD_BOUNDARY
        return SCORE_SUBSTRING

    tokens = q.split()
    if len(tokens) > 1 and all(token in value for token in tokens):
        return SCORE_ALL_TOKENS

    max_distance = int(len(q) * FUZZY_TOLERANCE)
    distance = levenshtein_distance(q, value[: len(q) + FUZZY_PREFIX_SLACK])
    if distance <= max_distance:
        return max(FUZZY_BASE - distance * FUZZY_STEP, FUZZY_FLOOR)
    return 0


def _best_match(query: str, contact: ExtendedContact) -> tuple[int, str]:
    best_score = 0
    matched_field = ""
    for label, value in contact.searchable_fields():
        score = score_field(query, value)
        if score > best_score:
            best_score = score
            matched_field = label
    return best_score, matched_field


@traced_engine("contact_search", "1.0", fingerprint_fields=("query",))
def search_contacts(query: str | None, contacts: Iterable[ExtendedContact]) -> list[ScoredResult]:
    """Score every contact and return matches ranked best first."""
    if not query or len(query.strip()) < MIN_QUERY_LENGTH:
        return []

    results: list[ScoredResult] = []
    for contact in contacts:
        score, matched_field = _best_match(query, contact)
        if score >= SCORE_THRESHOLD:
            results.append(ScoredResult(contact=contact, score=score, matched_field=matched_field))

    results.sort(key=lambda r: r.score, reverse=True)
    logger.debug("contact_search_completed", extra={"query": query, "matches": len(results)})
    return results


def is_buyer(contact: ExtendedContact) -> bool:
    return contact.buyer


def is_supplier(contact: ExtendedContact) -> bool:
    return contact.supplier


def search_buyers(
    query: str | None,
    contacts: Sequence[ExtendedContact],
    limit: int = DEFAULT_SEARCH_LIMIT,
) -> list[ScoredResult]:
    return [r for r in search_contacts(query, contacts) if is_buyer(r.contact)][:limit]


def search_suppliers(
    query: str | None,
    contacts: Sequence[ExtendedContact],
    limit: int = DEFAULT_SEARCH_LIMIT,
) -> list[ScoredResult]:
    return [r for r in search_contacts(query, contacts) if is_supplier(r.contact)][:limit]

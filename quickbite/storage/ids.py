"""Translation between numeric application ids and document ObjectIds.

The application addresses every record by a positive integer. The
document store addresses documents by 12-byte ObjectIds. The two spaces
are reconciled by minting ObjectIds from numeric ids: id ``n`` becomes the
ObjectId whose 24 hex digits are ``n`` zero-padded on the left.

Only ObjectIds in that minted range translate back. Driver-generated
ObjectIds embed a timestamp in their leading bytes and fall far outside
it; they must be rewritten with ``DocumentBackend.reconcile_identifiers``
before the application can address them.
"""

from bson import ObjectId
from bson.errors import InvalidId

from quickbite.core.exceptions import IdentifierError

OBJECT_ID_HEX_DIGITS = 24

# Numeric ids must also fit a signed 64-bit SQL integer so records can
# move freely between backends.
MAX_NUMERIC_ID = 2**63 - 1


def object_id_for(numeric_id: int) -> ObjectId:
    """Return the ObjectId that stands for ``numeric_id``."""
    if isinstance(numeric_id, bool) or not isinstance(numeric_id, int):
        raise IdentifierError(f"Numeric id must be an integer: {numeric_id!r}")
    if not 1 <= numeric_id <= MAX_NUMERIC_ID:
        raise IdentifierError(f"Numeric id out of range: {numeric_id}")
    return ObjectId(format(numeric_id, f"0{OBJECT_ID_HEX_DIGITS}x"))


def numeric_id_for(object_id: ObjectId | str) -> int:
    """Return the numeric id encoded in a minted ObjectId."""
    try:
        oid = object_id if isinstance(object_id, ObjectId) else ObjectId(object_id)
    except (InvalidId, TypeError) as e:
        raise IdentifierError(f"Not an ObjectId: {object_id!r}") from e

    value = int(str(oid), 16)
    if not 1 <= value <= MAX_NUMERIC_ID:
        raise IdentifierError(f"ObjectId was not minted from a numeric id: {oid}")
    return value


def is_minted(object_id: ObjectId) -> bool:
    """Whether ``object_id`` translates to a numeric id."""
    try:
        numeric_id_for(object_id)
    except IdentifierError:
        return False
    return True


def try_object_id_for(numeric_id: int) -> ObjectId | None:
    """Like ``object_id_for`` but returns None for untranslatable ids."""
    try:
        return object_id_for(numeric_id)
    except IdentifierError:
        return None

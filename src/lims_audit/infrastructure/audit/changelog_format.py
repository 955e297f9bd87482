"""Changes Payload Format.

The "changes" attribute of a History row is a sequence of elements, one per
change entry, each written as ``<label>value</label>`` followed by a newline.
Values are written as already stringified; no escaping is applied, which
keeps the payload byte-compatible with existing history rows.

Example:
    ``<accession_number>A-2</accession_number>\\n<status>done</status>\\n``
"""

from typing import Iterable

from lims_audit.domain.audit_models import ChangeEntry


def render_changes(entries: Iterable[ChangeEntry]) -> str:
    """Render change entries as the changes payload text."""
    return "".join(
        f"<{entry.label}>{entry.value}</{entry.label}>\n" for entry in entries
    )


def encode_changes(entries: Iterable[ChangeEntry], encoding: str) -> bytes:
    """Render and encode change entries for storage.
    
    Parameters:
        entries: Change entries in audit order
        encoding: Text encoding used for the stored payload
    
    Returns:
        Encoded payload bytes
    """
    return render_changes(entries).encode(encoding)

"""
Form extraction: submission target plus name -> current value for every
input/textarea inside the first element matching a selector.
"""
import logging
from collections import namedtuple

from portalwatch.core.errors import NotFoundError
from portalwatch.portal.document import Document

logger = logging.getLogger(__name__)

FIELD_SELECTOR = "input, textarea"

# target_path: the form's action attribute (may be relative, may be None)
# fields: dict of field name -> current value, in document order
FormData = namedtuple("FormData", ["target_path", "fields"])


def extract_form(document: Document, selector: str) -> FormData:
    """Extract the first form matching selector. Raises NotFoundError if nothing matches."""
    form = document.query_one(selector)
    if form is None:
        raise NotFoundError(f"No element matches form selector {selector!r} on {document.url or 'page'}")

    fields = {}
    for control in document.query(FIELD_SELECTOR, within=form):
        name = document.attr(control, "name")
        if not name:
            # Nameless controls are never submitted by a browser either
            logger.debug(f"Skipping nameless <{control.name}> in form {selector!r}")
            continue
        fields[name] = document.value(control)

    return FormData(target_path=document.attr(form, "action"), fields=fields)

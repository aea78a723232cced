def normalize_phone(raw: str) -> str:
    """
    Canonicalize a phone number to "+<countrycode><number>".

    WhatsApp delivers senders as bare digits ("233247877745"); roster entries
    are usually typed with a leading "+" and sometimes with spaces or dashes.
    """
    digits = "".join(ch for ch in str(raw) if ch.isdigit())
    return f"+{digits}" if digits else ""


def to_whatsapp_id(phone: str) -> str:
    """Strip the leading "+" for the Graph API "to" field."""
    return phone.lstrip("+")

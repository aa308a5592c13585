import re

# Characters lxml refuses in XML text: C0 controls other than tab/newline/CR,
# lone surrogates, and the U+FFFE/U+FFFF noncharacters.
XML_INCOMPATIBLE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


def clean_text(text: str | None) -> str:
    if not text:
        return ""
    return XML_INCOMPATIBLE.sub("", text)


def is_xml_safe(text: str) -> bool:
    return XML_INCOMPATIBLE.search(text) is None

from xml.etree import ElementTree

DOCBOOK_NS = "{http://docbook.org/ns/docbook}"


def xref(link: str) -> str:
    return f'<xref linkend="{link}" xrefstyle="select: label quotedtitle"/>'


def td(*values: str, colspan: int = 0) -> str:
    """Return a table cell with a paragraph for each value.

    Values starting with '<' are inserted as they are.
    """
    paras = "".join(v if v.startswith("<") else f"<para>{v}</para>" for v in values)
    attrs = f' colspan="{colspan}"' if colspan else ""
    return f"<td{attrs}>{paras}</td>"


def tr(*cells) -> str:
    """Return a table row. Each cell is either a complete `td` element,
    a string for a single paragraph, or a tuple of paragraph values."""
    tds = []
    for cell in cells:
        if isinstance(cell, tuple):
            tds.append(td(*cell))
        elif cell.startswith("<td"):
            tds.append(cell)
        else:
            tds.append(td(cell))
    return "<tr>" + "".join(tds) + "</tr>"


def table(label: str, caption: str | None, *rows: str) -> str:
    caption_node = f"<caption>{caption}</caption>" if caption is not None else ""
    return (
        f'<table label="{label}" xml:id="table_{label}">{caption_node}'
        "<thead><tr><th><para>Header</para></th></tr></thead>"
        f"<tbody>{''.join(rows)}</tbody></table>"
    )


def section(label: str, title: str, *contents: str) -> str:
    return (
        f'<section label="{label}" xml:id="sect_{label}">'
        f"<title>{title}</title>{''.join(contents)}</section>"
    )


def variable_list(title: str, *terms: str) -> str:
    entries = "".join(
        f"<varlistentry><term>{term}</term>"
        f"<listitem><para>Description of {term}</para></listitem></varlistentry>"
        for term in terms
    )
    return f"<variablelist><title>{title}</title>{entries}</variablelist>"


def tag_row(tag_id, name, keyword, vr, vm, retired="") -> str:
    return tr(tag_id, name, keyword, vr, vm, retired)


def book_xml(label: str, contents: str = "", version: str = "2020a") -> str:
    subtitle = f"<subtitle>DICOM {label} {version} - Title</subtitle>"
    return (
        '<book xmlns="http://docbook.org/ns/docbook" '
        'xmlns:xl="http://www.w3.org/1999/xlink" '
        f'label="{label}"><title>DICOM {label}</title>{subtitle}'
        f'<chapter label="1">{contents}</chapter></book>'
    )


def book(label: str, contents: str = "", version: str = "2020a"):
    return ElementTree.fromstring(book_xml(label, contents, version))

"""Default ``applicationHost.xdt`` generation.

The hosting runtime applies this transform to its applicationHost.config to
mount an installed extension as a virtual application under ``/<id>``.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET

XDT_FILE_NAME = "applicationHost.xdt"
XDT_NAMESPACE = "http://schemas.microsoft.com/XML-Document-Transform"

ET.register_namespace("xdt", XDT_NAMESPACE)


def _xdt(name: str) -> str:
    return f"{{{XDT_NAMESPACE}}}{name}"


def build_default_xdt(extension_id: str) -> ET.Element:
    """Build the default transform element tree for an extension id."""
    app_path = f"/{extension_id}"

    configuration = ET.Element("configuration")
    host = ET.SubElement(configuration, "system.applicationHost")
    sites = ET.SubElement(host, "sites")
    site = ET.SubElement(
        sites,
        "site",
        {"name": "%XDT_SCMSITENAME%", _xdt("Locator"): "Match(name)"},
    )
    ET.SubElement(
        site,
        "application",
        {"path": app_path, _xdt("Locator"): "Match(path)", _xdt("Transform"): "Remove"},
    )
    application = ET.SubElement(
        site,
        "application",
        {
            "path": app_path,
            "applicationPool": "%XDT_APPPOOLNAME%",
            _xdt("Transform"): "Insert",
        },
    )
    ET.SubElement(
        application,
        "virtualDirectory",
        {"path": "/", "physicalPath": "%XDT_EXTENSIONPATH%"},
    )
    return configuration


def render_default_xdt(extension_id: str) -> bytes:
    """Serialize the default transform for an extension id as UTF-8 XML."""
    root = build_default_xdt(extension_id)
    ET.indent(root, space="  ")
    # Attribute values escape ">", so " />" only occurs at empty-element ends
    body = ET.tostring(root, encoding="unicode").replace(" />", "/>")
    return f'<?xml version="1.0" encoding="utf-8"?>\n{body}\n'.encode("utf-8")

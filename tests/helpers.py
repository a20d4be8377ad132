from __future__ import annotations


def descriptor(body: str, *, namespace: str | None = None) -> bytes:
    """Wrap element markup in a descriptor root with the required fields."""

    xmlns = f' xmlns="{namespace}"' if namespace else ""
    return (
        '<?xml version="1.0" encoding="utf-8"?>\n'
        f"<appengine-web-app{xmlns}>\n"
        "  <application>guestbook</application>\n"
        "  <version>1</version>\n"
        f"{body}\n"
        "</appengine-web-app>\n"
    ).encode("utf-8")

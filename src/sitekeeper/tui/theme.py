"""@brief Theme definitions and helpers for the SiteKeeper TUI."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Theme:
    """@brief Capture palette values so styling stays centralized."""

    screen_background: str
    table_background: str
    modal_background: str
    border_table: str
    border_modal: str
    text_default: str
    text_title: str
    text_status: str
    text_error: str
    row_highlight: str


MONOKAI_THEME = Theme(
    screen_background="#272822",
    table_background="#1e1f1c",
    modal_background="#3e3d32",
    border_table="#66d9ef",
    border_modal="#a6e22e",
    text_default="#f8f8f2",
    text_title="#a6e22e",
    text_status="#fd971f",
    text_error="#f92672",
    row_highlight="#49483e",
)


def build_css(theme: Theme) -> str:
    """@brief Generate a Textual CSS string from the provided theme."""

    return f"""
    Screen {{
        layout: vertical;
        background: {theme.screen_background};
        color: {theme.text_default};
    }}

    #filter {{
        margin: 1 2 0 2;
    }}

    #entries {{
        height: 1fr;
        margin: 1 2;
        background: {theme.table_background};
        border: round {theme.border_table};
    }}

    #entries > .datatable--cursor {{
        background: {theme.row_highlight};
    }}

    .status {{
        color: {theme.text_status};
        padding: 0 2;
    }}

    ModalScreen {{
        align: center middle;
    }}

    .dialog {{
        width: 64;
        height: auto;
        padding: 1 2;
        background: {theme.modal_background};
        border: round {theme.border_modal};
    }}

    .dialog-title {{
        text-style: bold;
        color: {theme.text_title};
        margin-bottom: 1;
    }}

    .dialog-error {{
        color: {theme.text_error};
        height: auto;
    }}

    .dialog Input {{
        margin-bottom: 1;
    }}

    .buttons {{
        height: auto;
        align-horizontal: right;
        margin-top: 1;
    }}

    .buttons Button {{
        margin-left: 1;
    }}
    """

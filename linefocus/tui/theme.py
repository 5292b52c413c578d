"""Nord themes for the linefocus viewer.

Two variants are registered: a dark one for normal terminals and a
transparent one that lets the terminal background show through. Hidden
lines are never drawn, so the palette only needs to separate matched text,
status and the saved-pattern sidebar.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from textual.theme import Theme

if TYPE_CHECKING:
    from textual.app import App

THEME_NAME = "linefocus-nord"
TRANSPARENT_THEME_NAME = "linefocus-nord-transparent"

NORD = {
    "polar_night": ("#2E3440", "#3B4252", "#434C5E", "#4C566A"),
    "snow_storm": ("#D8DEE9", "#E5E9F0", "#ECEFF4"),
    "frost": ("#8FBCBB", "#88C0D0", "#81A1C1", "#5E81AC"),
    "aurora": {
        "red": "#BF616A",
        "orange": "#D08770",
        "yellow": "#EBCB8B",
        "green": "#A3BE8C",
        "purple": "#B48EAD",
    },
}


def build_theme(name: str = THEME_NAME) -> Theme:
    """Build a Nord theme under the given name.

    The status bar and sidebar checkboxes use ``primary``; notices use the
    aurora colours by severity.
    """
    polar, snow, frost, aurora = (
        NORD["polar_night"],
        NORD["snow_storm"],
        NORD["frost"],
        NORD["aurora"],
    )
    return Theme(
        name=name,
        primary=frost[1],
        secondary=frost[2],
        accent=aurora["purple"],
        foreground=snow[0],
        background=polar[0],
        success=aurora["green"],
        warning=aurora["yellow"],
        error=aurora["red"],
        surface=polar[1],
        panel=polar[2],
        dark=True,
        variables={
            "footer-key-foreground": frost[0],
            "input-selection-background": f"{frost[3]} 40%",
        },
    )


def register_nord_theme(app: App, transparent: bool = True) -> str:
    """Register both Nord variants and activate one.

    Args:
        app: The Textual application to register the themes on.
        transparent: Activate the transparent variant and enable ANSI
            colours so the terminal background shows through.

    Returns:
        The name of the activated theme.
    """
    app.register_theme(build_theme(THEME_NAME))
    app.register_theme(build_theme(TRANSPARENT_THEME_NAME))
    active = TRANSPARENT_THEME_NAME if transparent else THEME_NAME
    app.theme = active
    if transparent:
        app.ansi_color = True
    return active

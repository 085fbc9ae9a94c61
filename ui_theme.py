from typing import Any, Dict, List, Optional

import streamlit as st

from met_api import extract_year, get_best_image_url, text_field


def inject_global_css() -> None:
    """Shared base CSS for every page (gallery palette, intro block, artwork cards)."""
    st.markdown(
        """
        <style>
        /* Met red accent on a warm gallery background */
        .stApp { background-color: #f7f4ef; color: #1d1d1d; }
        div.block-container { max-width: 1400px; padding: 1.2rem 2.2rem 2.5rem; }
        section[data-testid="stSidebar"] { background-color: #ece6dc !important; }
        div[data-testid="stMarkdownContainer"] a { color: #e4002b !important; text-decoration: none; }
        div[data-testid="stMarkdownContainer"] a:hover { border-bottom: 1px solid #e4002b; }

        .met-intro { border-left: 3px solid #e4002b; padding: 0.2rem 0 0.2rem 0.9rem; margin: 0.4rem 0 1.2rem; }
        .met-intro h4 { margin: 0 0 0.3rem; font-family: Georgia, serif; font-weight: 500; }
        .met-intro ul { margin: 0; padding-left: 1.1rem; color: #4a4a4a; }

        .met-card-title {
            font-family: Georgia, serif;
            font-size: 1rem;
            line-height: 1.25;
            margin: 0.35rem 0 0.1rem;
            min-height: 1.3rem;
        }
        .met-card-caption { font-size: 0.85rem; color: #6b6b6b; margin-bottom: 0.25rem; }
        .met-no-image-msg {
            font-size: 0.8rem;
            color: #6b6b6b;
            background-color: #efe9df;
            border: 1px dashed #c9bfae;
            border-radius: 4px;
            padding: 2.5rem 0.6rem;
            text-align: center;
        }

        .met-footer {
            margin-top: 3rem;
            padding-top: 0.8rem;
            border-top: 1px solid #d8d0c3;
            font-size: 0.78rem;
            color: #7a7a7a;
            text-align: center;
        }
        .stButton > button { border-radius: 2px; }
        </style>
        """,
        unsafe_allow_html=True,
    )


def show_page_intro(title: str, bullets: List[str]) -> None:
    """Intro block at the top of a page: a heading and a few hints."""
    items_html = "".join(f"<li>{b}</li>" for b in bullets)
    st.markdown(
        f'<div class="met-intro"><h4>{title}</h4><ul>{items_html}</ul></div>',
        unsafe_allow_html=True,
    )


def render_artwork_card(art: Dict[str, Any], key_prefix: str, detail_page: Optional[str] = None) -> None:
    """One artwork card: image, title, artist, date, links."""
    title = text_field(art, "title") or "Untitled"
    maker = text_field(art, "artistDisplayName") or "Unknown artist"
    object_id = art.get("objectID")

    img_url = get_best_image_url(art)
    if img_url:
        st.image(img_url, use_container_width=True)
    else:
        st.markdown(
            '<div class="met-no-image-msg">No public image is available for this artwork.</div>',
            unsafe_allow_html=True,
        )

    st.markdown(f'<div class="met-card-title">{title}</div>', unsafe_allow_html=True)
    st.markdown(f'<div class="met-card-caption">{maker}</div>', unsafe_allow_html=True)

    date_label = text_field(art, "objectDate")
    year = extract_year(art)
    if date_label:
        st.text(f"Date: {date_label}")
    elif year is not None:
        st.text(f"Year: {year}")

    department = text_field(art, "department")
    if department:
        st.caption(department)

    web_link = text_field(art, "objectURL")
    if web_link:
        st.markdown(f"[View on metmuseum.org]({web_link})")

    if detail_page and object_id:
        if st.button("Details & similar", key=f"{key_prefix}_detail_{object_id}"):
            st.session_state["detail_object_id"] = object_id
            st.switch_page(detail_page)


def render_artwork_grid(items: List[Dict[str, Any]], key_prefix: str,
                        detail_page: Optional[str] = None, cards_per_row: int = 4) -> None:
    for start in range(0, len(items), cards_per_row):
        row = items[start:start + cards_per_row]
        cols = st.columns(cards_per_row)
        for col, art in zip(cols, row):
            with col:
                render_artwork_card(art, key_prefix=key_prefix, detail_page=detail_page)


def show_global_footer() -> None:
    """Standard footer for every page."""
    st.markdown(
        """
        <div class="met-footer">
            Met Explorer — prototype created for study & research purposes.<br>
            Data & images provided by The Metropolitan Museum of Art Collection API.
        </div>
        """,
        unsafe_allow_html=True,
    )

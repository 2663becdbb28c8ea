# listing_gallery/Home.py
import logging

import streamlit as st
import streamlit.components.v1 as components

from models.exceptions import ExtractionError, ValidationError
from utils.config_loader import APP_CONFIG
from utils.data_loader import get_session_gallery_app
from utils.product_display import (
    display_index,
    favicon_url,
    files_to_data_urls,
    has_contact,
    index_after_add,
    index_after_removal,
    next_image_index,
    prev_image_index,
    source_hostname,
    whatsapp_link,
)

logger = logging.getLogger(__name__)

st.set_page_config(
    page_title="Listing Gallery",
    page_icon="🚗",
    layout="wide"
)

if "error" in APP_CONFIG:
    st.error(f"Configuration Error: {APP_CONFIG['error']}")
    st.stop()

COUNTRY_CODE = str(APP_CONFIG['gallery'].get('whatsapp_country_code', '212'))


# --- SESSION STATE ---
try:
    app = get_session_gallery_app(APP_CONFIG)
except ValueError as e:
    st.error(f"Configuration Error: {e}")
    st.stop()


def scroll_to_top():
    components.html("<script>window.parent.document.querySelector('section.main').scrollTo({top: 0, behavior: 'smooth'});</script>", height=0)


# --- VIEWPORT ---
with st.sidebar:
    st.header("Display")
    viewport_width = st.select_slider(
        "Screen width (px)",
        options=[640, 768, 1024, 1280, 1600],
        value=APP_CONFIG['gallery'].get('default_viewport_width', 1280),
        help="12 listings per page from 1024px, 8 below.",
    )
    app.on_viewport_change(viewport_width)
    st.caption(f"Listings: {len(app.catalog)}")


# --- CARD ---
def render_carousel(product, editable=False):
    images = product.images
    current = display_index(st.session_state.image_index.get(product.id, 0), len(images))

    if images:
        st.image(images[current], use_container_width=True)
    else:
        st.image(favicon_url(product.original_url), width=64)
        st.caption("No images")

    if len(images) > 1 or (editable and images):
        nav1, nav2, nav3 = st.columns([1, 2, 1])
        if len(images) > 1:
            if nav1.button("◀", key=f"prev_img_{product.id}"):
                st.session_state.image_index[product.id] = prev_image_index(current, len(images))
                st.rerun()
            if nav3.button("▶", key=f"next_img_{product.id}"):
                st.session_state.image_index[product.id] = next_image_index(current, len(images))
                st.rerun()
            nav2.caption(f"{current + 1} / {len(images)}")
        if editable and nav2.button("🗑️ Remove image", key=f"rm_img_{product.id}"):
            count_before = len(images)
            if app.remove_image_from_draft(current):
                st.session_state.image_index[product.id] = index_after_removal(current, count_before)
            st.rerun()


def render_card(product):
    with st.container(border=True):
        render_carousel(product)
        st.markdown(f"**{product.title}**")
        st.markdown(f"💰 {product.price}")
        col_view, col_delete = st.columns(2)
        if col_view.button("Details", key=f"view_{product.id}", use_container_width=True):
            app.select_product(product.id)
            st.rerun()
        if col_delete.button("🗑️", key=f"delete_{product.id}", help="Delete listing", use_container_width=True):
            app.remove_product(product.id)
            st.rerun()


# --- VIEW 1: PRODUCT DETAILS ---
def render_details(product):
    if st.button("← Back to list"):
        app.clear_selection()
        st.rerun()

    col_images, col_info = st.columns([3, 2])
    with col_images:
        render_carousel(product)
        if len(product.images) > 1:
            thumbs = st.columns(min(len(product.images), 5))
            for idx, img in enumerate(product.images):
                with thumbs[idx % len(thumbs)]:
                    st.image(img, use_container_width=True)
                    if st.button("View", key=f"thumb_{product.id}_{idx}"):
                        st.session_state.image_index[product.id] = idx
                        st.rerun()

    with col_info:
        st.header(product.title)
        st.subheader(product.price)
        st.write(product.description)

        if product.sources:
            with st.expander(f"Sources ({len(product.sources)})"):
                for source in product.sources:
                    st.markdown(f"- [{source_hostname(source, source)}]({source})")

        if has_contact(product, COUNTRY_CODE):
            if product.phone_number:
                st.link_button(f"📞 Call {product.phone_number}", f"tel:{product.phone_number}", use_container_width=True)
            wa_link = whatsapp_link(product, COUNTRY_CODE)
            if wa_link:
                st.link_button("💬 WhatsApp", wa_link, use_container_width=True)
        else:
            st.link_button(f"View on {source_hostname(product.original_url)}", product.original_url, use_container_width=True)


# --- VIEW 2: DRAFT REVIEW ---
def render_draft(draft):
    _, center, _ = st.columns([1, 2, 1])
    with center:
        st.header("Review the listing before publishing")
        st.caption("Add more images or check the details.")
        with st.container(border=True):
            render_carousel(draft, editable=True)
            st.markdown(f"**{draft.title}**")
            st.markdown(f"💰 {draft.price}")
            if draft.description:
                st.caption(draft.description)

        with st.form("draft_images", clear_on_submit=True):
            uploads = st.file_uploader(
                f"Add images ({len(draft.images)}/10)",
                type=["png", "jpg", "jpeg", "webp"],
                accept_multiple_files=True,
            )
            if st.form_submit_button("➕ Add images", disabled=len(draft.images) >= 10) and uploads:
                count_before = len(draft.images)
                data_urls = files_to_data_urls(uploads)
                added = app.add_images_to_draft(data_urls)
                if added < len(data_urls):
                    st.toast("A listing can hold at most 10 images; extra images were skipped.")
                st.session_state.image_index[draft.id] = index_after_add(
                    st.session_state.image_index.get(draft.id, 0), count_before, count_before + added
                )
                st.rerun()

        if st.button("✅ Publish now", type="primary", use_container_width=True):
            app.publish_draft()
            st.rerun()
        if st.button("Cancel", use_container_width=True):
            app.cancel_draft()
            st.rerun()


# --- VIEW 3: INPUT FORM & GALLERY ---
def render_input_form():
    with st.form("fetch_product", clear_on_submit=False):
        col_url, col_submit = st.columns([4, 1])
        url = col_url.text_input("Listing URL", placeholder="https://www.avito.ma/...", label_visibility="collapsed")
        submitted = col_submit.form_submit_button("➕ Add", disabled=app.is_loading(), use_container_width=True)

    if submitted:
        try:
            task = app.submit_url(url)
        except ValidationError:
            # app.last_error holds the message shown below
            pass
        else:
            with st.spinner("Fetching..."):
                try:
                    app.complete_extraction(task)
                except ExtractionError as e:
                    logger.error(f"Extraction failed for {url}: {e}")
            st.rerun()

    if app.last_error:
        st.error(app.last_error)


def render_gallery():
    if len(app.catalog) == 0:
        st.info("No listings yet. Paste a link above to add one.")
        return

    # A wider viewport can leave the current page past the last one; the controls below lead back
    products = app.visible_products()

    columns_per_row = 4 if app.cursor.items_per_page == 12 else 2
    for start in range(0, len(products), columns_per_row):
        row = st.columns(columns_per_row)
        for col, product in zip(row, products[start:start + columns_per_row]):
            with col:
                render_card(product)

    total_pages = app.total_pages()
    if total_pages > 1:
        col_prev, col_page, col_next = st.columns([1, 2, 1])
        if col_prev.button("◀ Previous", disabled=app.cursor.current_page <= 1, use_container_width=True):
            app.prev_page()
            st.rerun()
        col_page.markdown(f"<div style='text-align:center'>Page {app.cursor.current_page} of {total_pages}</div>", unsafe_allow_html=True)
        if col_next.button("Next ▶", disabled=app.cursor.current_page >= total_pages, use_container_width=True):
            app.next_page()
            st.rerun()

    if app.cursor.scroll_to_top_requested:
        app.cursor.scroll_to_top_requested = False
        scroll_to_top()


st.title("🚗 Listing Gallery")

selected = app.selected_product()
draft = app.draft.product
if selected is not None:
    render_details(selected)
elif draft is not None:
    render_draft(draft)
else:
    render_input_form()
    st.markdown("---")
    render_gallery()

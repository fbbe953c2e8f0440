"""
Streamlit Frontend for SplitSmart

Left: the receipt, with who had what on each line.
Right: the split assistant chat.
Bottom: the live summary of what everybody owes.

The UI holds no split logic of its own. It reads the session's
receipt, ledger and summaries and sends commands back to it.
"""

import asyncio

import streamlit as st

from splitsmart.audit import configure_logging
from splitsmart.config import get_settings, validate_all_settings
from splitsmart.models.ledger import LedgerOperation
from splitsmart.models.receipt import ChatRole
from splitsmart.orchestrator import SplitSession, create_session
from splitsmart.services.recognition import RecognitionError
from splitsmart.validation import ReceiptValidator


st.set_page_config(
    page_title="SplitSmart",
    page_icon="🧾",
    layout="wide",
)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def get_session() -> SplitSession:
    """One split session per browser session."""
    if "split_session" not in st.session_state:
        st.session_state.split_session = create_session()
    return st.session_state.split_session


def money(amount: float) -> str:
    return f"{get_settings().app.currency_symbol}{amount:,.2f}"


def render_receipt_pane(session: SplitSession):
    """Upload control and the item list."""
    st.subheader("🧾 Receipt")

    uploaded_file = st.file_uploader(
        "Upload a receipt photo",
        type=["jpg", "jpeg", "png", "webp", "heic"],
    )

    if uploaded_file and st.button("🔍 Read Receipt", type="primary"):
        with st.spinner("Reading your receipt..."):
            try:
                run_async(session.upload_receipt(
                    image_bytes=uploaded_file.getvalue(),
                    mime_type=uploaded_file.type,
                    filename=uploaded_file.name,
                ))
                st.rerun()
            except RecognitionError as e:
                st.error(f"Could not read the receipt: {e}")

    receipt = session.receipt
    if receipt is None:
        st.info("Upload a receipt to get started.")
        return

    if session.validation and session.validation.issues:
        with st.expander("⚠️ Receipt check"):
            st.text(ReceiptValidator().get_user_friendly_summary(session.validation))

    ledger = session.ledger
    for item in receipt.items:
        shares = ledger.get(item.id, {})
        col1, col2, col3 = st.columns([4, 2, 1])
        with col1:
            st.markdown(f"**{item.name}**")
            if shares:
                st.caption(", ".join(
                    f"{person} ({share:.0%})" for person, share in shares.items()
                ))
            else:
                st.caption("Unassigned")
        with col2:
            st.markdown(money(item.price))
        with col3:
            if shares and st.button("✖", key=f"clear-{item.id}", help="Clear this item"):
                run_async(session.apply_operations([LedgerOperation.clear(item.id)]))
                st.rerun()

    st.markdown("---")
    st.markdown(f"Subtotal: {money(receipt.subtotal)}")
    st.markdown(f"Tax: {money(receipt.tax)}")
    st.markdown(f"Tip: {money(receipt.tip)}")
    st.markdown(f"**Total: {money(receipt.total)}**")


def render_chat_pane(session: SplitSession):
    """The split assistant transcript and input."""
    st.subheader("💬 Split Assistant")

    if session.receipt is None:
        st.caption("The assistant wakes up once a receipt is loaded.")
        return

    if not session.messages:
        st.markdown(
            """
            **Try:**
            - "Tom had the burger"
            - "Alice and Bob shared the pizza"
            - "Reset the fries"
            """
        )

    for message in session.messages:
        role = "user" if message.role == ChatRole.USER else "assistant"
        with st.chat_message(role):
            st.write(message.text)

    command = st.chat_input("Type a command (e.g., 'Sarah had the salad')...")
    if command:
        with st.spinner("Thinking..."):
            run_async(session.send_command(command))
        st.rerun()


def render_summary(session: SplitSession):
    """Live split summary footer."""
    overview = session.overview()
    if not overview.people:
        return

    st.markdown("---")
    st.subheader("Live Split Summary")

    columns = st.columns(min(len(overview.people), 4))
    for index, person in enumerate(overview.people):
        with columns[index % len(columns)]:
            st.metric(person.name, money(person.total))
            st.caption(f"Items: {money(person.items_total)}")
            st.caption(f"Tax/Tip: {money(person.extras)}")

    if overview.unassigned_amount > 0:
        st.warning(f"Still unassigned: {money(overview.unassigned_amount)}")


def main():
    """Main application entry point."""
    configure_logging(get_settings().app.debug_mode)

    st.title("🧾 SplitSmart")

    status = validate_all_settings()
    if not status["gemini"]:
        st.error("Gemini is not configured. Set GEMINI_API_KEY in your environment or .env file.")
        st.stop()

    session = get_session()

    left, right = st.columns(2)
    with left:
        render_receipt_pane(session)
    with right:
        render_chat_pane(session)

    render_summary(session)


if __name__ == "__main__":
    main()

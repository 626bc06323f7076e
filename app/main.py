"""
Streamlit Frontend for Drawer

The personal data warehouse UI: drop in receipts, bills, pay stubs and
records, then ask about them in plain language.

DESIGN PRINCIPLES:
1. Chat first - uploading and asking happen in the same place
2. Clear error messages in simple language
3. Visual feedback for all operations
4. Every number on screen comes from the stored data

The assistant's download links ([label](/uploads/...)) are rendered
as real download buttons next to the message text.
"""

import asyncio
from datetime import date

import streamlit as st

from drawer.chat import DownloadLink, split_download_links
from drawer.config import get_settings, validate_all_settings
from drawer.insights import format_money
from drawer.models import CATEGORIES, ChatRole
from drawer.orchestrator import (
    ChatAttachment,
    ChatFlow,
    DocumentUploadFlow,
    NotesFlow,
    ReportsFlow,
    create_app_components,
    seed_demo_data,
)
from drawer.services.files import StoredFileMissingError, UploadRejectedError


# Page configuration
st.set_page_config(
    page_title="Drawer",
    page_icon="🗄️",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .insight-box {
        padding: 16px;
        background-color: #cce5ff;
        border-radius: 10px;
        border-left: 5px solid #004085;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2.2em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)

UPLOAD_TYPES = ["pdf", "png", "jpg", "jpeg", "webp"]


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    try:
        components = create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        components = create_app_components(use_storage=False)
    if get_settings().app.demo_data:
        run_async(seed_demo_data(components))
    return components


def format_bytes(size: int) -> str:
    """Human-readable file size."""
    for unit in ("B", "KB", "MB"):
        if size < 1024:
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


def main():
    """Main application entry point."""
    components = get_components()

    # Sidebar navigation
    st.sidebar.title("🗄️ Drawer")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["💬 Chat", "📤 Upload", "📊 Dashboard", "📅 Calendar", "📝 Notes", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **Try asking:**
        - "How much did I spend at Starbucks?"
        - "When is my Comcast bill due?"
        - "Remind me to renew my passport on 2026-03-01"
        - "Download my W-2"
        """
    )

    # Route to appropriate page
    if page == "💬 Chat":
        render_chat_page(components.chat_flow, components.upload_flow)
    elif page == "📤 Upload":
        render_upload_page(components.upload_flow)
    elif page == "📊 Dashboard":
        render_dashboard_page(components.reports_flow)
    elif page == "📅 Calendar":
        render_calendar_page(components.reports_flow)
    elif page == "📝 Notes":
        render_notes_page(components.notes_flow)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_message_content(content: str, upload_flow: DocumentUploadFlow, key: str):
    """Render assistant text, turning /uploads/ links into download buttons."""
    for index, segment in enumerate(split_download_links(content)):
        if isinstance(segment, DownloadLink):
            try:
                data = run_async(upload_flow.read_file(segment.url))
            except StoredFileMissingError:
                st.caption(f"📎 {segment.label} (file no longer available)")
                continue
            st.download_button(
                label=f"⬇️ {segment.label}",
                data=data,
                file_name=segment.url.rsplit("/", 1)[-1],
                key=f"{key}-{index}",
            )
        elif segment.strip():
            st.markdown(segment)


def render_chat_page(chat_flow: ChatFlow, upload_flow: DocumentUploadFlow):
    """Render the chat page."""
    st.title("💬 Chat")

    col1, col2, col3 = st.columns([3, 1, 1])
    with col1:
        name = st.text_input("Your name", value="User", label_visibility="collapsed")
    with col2:
        if st.button("✨ Simulate event"):
            run_async(chat_flow.post_simulated_event(name))
            st.rerun()
    with col3:
        if st.button("🧹 Clear chat"):
            run_async(chat_flow.clear_messages())
            st.rerun()

    for message in run_async(chat_flow.list_messages()):
        avatar = "🧑" if message.role == ChatRole.USER else "🗄️"
        with st.chat_message(message.role.value, avatar=avatar):
            if message.role == ChatRole.ASSISTANT:
                render_message_content(message.content, upload_flow, key=f"msg-{message.id}")
            else:
                st.markdown(message.content)
                if message.attachment_url:
                    st.caption(f"📎 {message.attachment_url}")

    with st.expander("📎 Attach a file"):
        attachment = st.file_uploader(
            "Receipt, bill, pay stub or record",
            type=UPLOAD_TYPES,
            key="chat_attachment",
        )
        if attachment and st.button("Send file", type="primary"):
            send_chat(chat_flow, None, ChatAttachment(
                data=attachment.getvalue(),
                filename=attachment.name,
                mime_type=attachment.type or "application/octet-stream",
            ))

    prompt = st.chat_input("Ask about your documents or save a note...")
    if prompt:
        send_chat(chat_flow, prompt, None)


def send_chat(chat_flow: ChatFlow, message, attachment):
    """Send one chat turn and refresh the page."""
    with st.spinner("Thinking..."):
        try:
            run_async(chat_flow.send_message(message, attachment))
        except UploadRejectedError as e:
            st.error(f"❌ {e}")
            return
        except Exception as e:
            st.error(f"Failed to process message: {e}")
            return
    st.rerun()


def render_upload_page(upload_flow: DocumentUploadFlow):
    """Render the document upload page."""
    st.title("📤 Upload a Document")
    st.markdown("PDF, PNG, JPEG or WEBP, up to 10 MB.")

    uploaded_file = st.file_uploader("Choose a file", type=UPLOAD_TYPES)

    if uploaded_file and st.button("📥 File it", type="primary"):
        with st.spinner("Reading your document..."):
            try:
                document = run_async(upload_flow.upload(
                    uploaded_file.getvalue(),
                    uploaded_file.name,
                    uploaded_file.type or "application/octet-stream",
                ))
            except UploadRejectedError as e:
                st.error(f"❌ {e}")
                return
            except Exception as e:
                st.error(f"❌ Could not process this document: {e}")
                return

        st.success(f"✅ Saved **{document.merchant}** ({document.category.value})")
        st.markdown(f"""
        <div class="insight-box">
            <p>{document.insight}</p>
        </div>
        """, unsafe_allow_html=True)

    st.markdown("---")
    st.markdown("### 📂 Your Documents")

    documents = run_async(upload_flow.list_documents())
    if not documents:
        st.info("📋 Your documents will appear here once you upload them.")
        return

    for document in documents:
        with st.expander(
            f"#{document.id} {document.merchant} · {document.transaction_type.value} · "
            f"{format_money(document.amount)} · {document.date.isoformat()}"
        ):
            st.markdown(f"**Category:** {document.category.value}")
            if document.due_date:
                st.markdown(f"**Due:** {document.due_date.isoformat()}")
            st.markdown(document.summary or "_No summary_")
            st.caption(document.insight)
            if st.button("🗑️ Delete", key=f"delete-doc-{document.id}"):
                run_async(upload_flow.delete_document(document.id))
                st.rerun()


def render_dashboard_page(reports_flow: ReportsFlow):
    """Render the dashboard page."""
    st.title("📊 Dashboard")

    stats = run_async(reports_flow.get_stats())

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Expenses", format_money(stats.total_expenses))
    with col2:
        st.metric("Income", format_money(stats.total_income))
    with col3:
        st.metric("Documents", stats.total_documents)
    with col4:
        st.metric("Storage", format_bytes(stats.total_storage_bytes))

    if stats.top_category:
        st.caption(f"Largest category by storage: **{stats.top_category}**")

    st.markdown("---")
    st.markdown("### 📈 Monthly Flow")

    today = date.today()
    col1, col2 = st.columns(2)
    with col1:
        year = st.number_input("Year", min_value=2000, max_value=2100, value=today.year)
    with col2:
        month = st.selectbox("Month", options=list(range(1, 13)), index=today.month - 1)

    flow = run_async(reports_flow.get_monthly_flow(int(year), int(month)))
    st.bar_chart(
        {
            "date": [day.date.isoformat() for day in flow],
            "expenses": [float(day.expenses) for day in flow],
            "income": [float(day.income) for day in flow],
        },
        x="date",
    )

    st.markdown("### 🗂️ Storage by Category")
    storage = run_async(reports_flow.get_storage_by_category())
    if storage:
        st.table([
            {
                "Category": row.category,
                "Documents": row.count,
                "Size": format_bytes(row.total_bytes),
            }
            for row in storage
        ])
    else:
        st.info("No documents stored yet.")

    with st.expander("🧠 What the assistant sees"):
        st.code(run_async(reports_flow.get_rag_context()), language="text")


def render_calendar_page(reports_flow: ReportsFlow):
    """Render bills and reminders by date."""
    st.title("📅 Calendar")

    col1, col2 = st.columns(2)
    with col1:
        start = st.date_input("From", value=date(date.today().year, 1, 1))
    with col2:
        end = st.date_input("To", value=date(date.today().year, 12, 31))

    events = run_async(reports_flow.get_calendar_events(start, end))
    if not events:
        st.info("No bills or reminders in this range.")
        return

    current_day = None
    for event in events:
        if event.date != current_day:
            current_day = event.date
            st.markdown(f"#### {current_day.strftime('%a %d %b %Y')}")
        icon = "💸" if event.type.value == "bill" else "⏰"
        st.markdown(f"{icon} **{event.title}**")
        if event.details and event.details != event.title:
            st.caption(event.details)


def render_notes_page(notes_flow: NotesFlow):
    """Render the notes and reminders page."""
    st.title("📝 Notes & Reminders")

    with st.form("new_note", clear_on_submit=True):
        content = st.text_area("Note")
        col1, col2 = st.columns(2)
        with col1:
            reminder_date = st.date_input("Reminder date", value=None)
        with col2:
            reminder_time = st.time_input("Reminder time", value=None)
        if st.form_submit_button("💾 Save note", type="primary"):
            try:
                run_async(notes_flow.create_note({
                    "content": content,
                    "reminder_date": reminder_date,
                    "reminder_time": reminder_time.strftime("%H:%M") if reminder_time else None,
                }))
                st.success("✅ Note saved")
            except Exception as e:
                st.error(f"❌ {e}")

    st.markdown("---")

    notes = run_async(notes_flow.list_notes())
    if not notes:
        st.info("No notes yet. Ask the assistant to remember something, or add one above.")
        return

    for note in notes:
        col1, col2, col3 = st.columns([6, 1, 1])
        with col1:
            text = f"~~{note.content}~~" if note.is_completed else note.content
            st.markdown(text)
            if note.reminder_date:
                at = f" at {note.reminder_time}" if note.reminder_time else ""
                st.caption(f"⏰ {note.reminder_date.isoformat()}{at}")
        with col2:
            label = "↩️" if note.is_completed else "✅"
            if st.button(label, key=f"toggle-{note.id}"):
                run_async(notes_flow.update_note(note.id, {"is_completed": not note.is_completed}))
                st.rerun()
        with col3:
            if st.button("🗑️", key=f"delete-note-{note.id}"):
                run_async(notes_flow.delete_note(note.id))
                st.rerun()


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Gemini (AI)", "gemini"),
        ("Google Sheets (Storage)", "google_sheets"),
        ("Application", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your API keys. "
        "See `.env.example` for the required variables. "
        f"Accepted categories: {', '.join(CATEGORIES)}."
    )


if __name__ == "__main__":
    main()

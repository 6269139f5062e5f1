"""
Streamlit Frontend for Piggery Ledger

The screen a small-scale pig farmer uses every day: register pigs, log
feed and expenses, record sales and see whether the pen makes money.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Explicit confirmation before any data is replaced
3. Clear error messages in simple language
4. Every change saved immediately, no "Save" button to forget

All logic lives in piggery.orchestrator.FarmSession; this module only
renders forms and shows the results it returns.
"""

import asyncio
from datetime import date

import streamlit as st

from piggery.analytics import chart_series, feed_unit_price
from piggery.config import validate_all_settings
from piggery.models import (
    FEED_TYPE_PRESETS,
    MISC_CATEGORY_PRESETS,
    FeedRecord,
    MiscRecord,
    PigStatus,
)
from piggery.orchestrator import (
    IMPORT_CONFIRM_PROMPT,
    RESTORE_CONFIRM_PROMPT,
    FarmSession,
    OperationResult,
    create_app_components,
)
from piggery.store import RecordStoreError


# Page configuration
st.set_page_config(
    page_title="PiggeryPro",
    page_icon="🐖",
    layout="wide",
    initial_sidebar_state="expanded",
)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_session() -> FarmSession:
    """Get or create the farm session (cached across reruns)."""
    return create_app_components()


def show_result(result: OperationResult):
    if result.ok:
        st.success(result.message)
    else:
        st.error(result.message)


def main():
    """Main application entry point."""
    session = get_session()

    st.sidebar.title("🐖 PiggeryPro")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "🐷 Pigs", "🌾 Feed", "💰 Sales", "🧾 Expenses", "⚙️ System"],
        index=0,
    )

    if not session.last_save_ok:
        st.sidebar.warning("Last change could not be saved to disk.")

    if page == "📊 Dashboard":
        render_dashboard(session)
    elif page == "🐷 Pigs":
        render_pigs_page(session)
    elif page == "🌾 Feed":
        render_feed_page(session)
    elif page == "💰 Sales":
        render_sales_page(session)
    elif page == "🧾 Expenses":
        render_expenses_page(session)
    elif page == "⚙️ System":
        render_system_page(session)


def render_dashboard(session: FarmSession):
    st.title("📊 Farm Overview")
    stats = session.stats()

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total Pigs", stats.total_pigs)
    col2.metric("Raising", stats.raising_count)
    col3.metric("Sold", stats.sold_count)
    col4.metric("Deceased", stats.deceased_count)

    col1, col2, col3 = st.columns(3)
    col1.metric("Revenue", session.money(stats.total_revenue))
    col2.metric("Expenses", session.money(stats.total_expenses))
    col3.metric(
        "Net Profit",
        session.money(stats.net_profit),
        delta=f"{stats.profit_margin:.1f}% margin",
    )

    st.markdown("### Costs")
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Feed", session.money(stats.total_feed_cost))
    col2.metric("Purchases", session.money(stats.total_purchase_cost))
    col3.metric("Other", session.money(stats.total_misc_cost))
    col4.metric("Feed per day", session.money(stats.avg_daily_feed_cost))

    st.markdown(f"**Sell-through:** {stats.sell_through_rate:.1f}% of pigs sold")
    st.bar_chart(chart_series(stats), x="name", y="value")


def render_pigs_page(session: FarmSession):
    st.title("🐷 Pig Registry")

    with st.expander("➕ Register pigs", expanded=not session.snapshot.pigs):
        with st.form("register_pigs", clear_on_submit=True):
            tag_id = st.text_input("Tag ID")
            quantity = st.number_input("Quantity", min_value=1, value=1, step=1)
            date_of_birth = st.date_input("Date of birth", value=date.today())
            initial_weight = st.number_input("Initial weight (kg)", min_value=0.0)
            purchase_cost = st.number_input("Purchase cost (per pig, 0 if home-bred)", min_value=0.0)
            notes = st.text_area("Notes")
            submitted = st.form_submit_button("Register")

        if submitted:
            if not tag_id.strip():
                st.error("Tag ID is required.")
            else:
                pigs = session.register_pigs(
                    tag_id,
                    int(quantity),
                    date_of_birth,
                    initial_weight,
                    purchase_cost=purchase_cost or None,
                    notes=notes or None,
                )
                st.success(f"Registered {len(pigs)} pig(s).")

    col1, col2 = st.columns(2)
    with col1:
        status = st.selectbox(
            "Filter by Status",
            options=[None] + list(PigStatus),
            format_func=lambda x: "All" if x is None else x.value.title(),
        )
    with col2:
        order = st.selectbox("Order", options=["newest", "oldest"], format_func=str.title)

    for pig in session.pigs(status=status, order=order):
        with st.container(border=True):
            col1, col2, col3 = st.columns([3, 2, 1])
            col1.markdown(f"**{pig.tag_id}** · born {pig.date_of_birth.isoformat()}")
            col1.caption(pig.notes or "")
            if pig.status == PigStatus.SOLD:
                col2.markdown("Sold")
            else:
                # SOLD is set by recording a sale on the Sales page.
                manual = [PigStatus.RAISING, PigStatus.DECEASED]
                new_status = col2.selectbox(
                    "Status",
                    options=manual,
                    index=manual.index(pig.status),
                    format_func=lambda x: x.value.title(),
                    key=f"status_{pig.id}",
                    label_visibility="collapsed",
                )
                if new_status != pig.status:
                    try:
                        session.update_pig(pig.model_copy(update={"status": new_status}))
                        st.rerun()
                    except RecordStoreError as e:
                        st.error(str(e))
            if col3.button("Delete", key=f"delete_pig_{pig.id}"):
                session.delete_pig(pig.id)
                st.rerun()


def render_feed_page(session: FarmSession):
    st.title("🌾 Feed Purchases")
    pigs = {p.id: p.tag_id for p in session.snapshot.pigs}

    with st.form("add_feed", clear_on_submit=True):
        date_purchased = st.date_input("Date purchased", value=date.today())
        feed_type = st.selectbox("Feed type", options=FEED_TYPE_PRESETS, index=1)
        amount_kg = st.number_input("Amount (kg)", min_value=0.0)
        cost = st.number_input("Cost", min_value=0.0)
        pig_id = st.selectbox(
            "For pig (optional)",
            options=[None] + list(pigs),
            format_func=lambda x: "Whole pen" if x is None else pigs[x],
        )
        submitted = st.form_submit_button("Add feed")

    if submitted:
        session.add_feed(FeedRecord(
            pig_id=pig_id,
            date_purchased=date_purchased,
            cost=cost,
            amount_kg=amount_kg,
            feed_type=feed_type,
        ))
        st.success("Feed purchase recorded.")

    for record in sorted(session.snapshot.feed_records, key=lambda r: r.date_purchased, reverse=True):
        col1, col2 = st.columns([5, 1])
        col1.markdown(
            f"{record.date_purchased.isoformat()} · **{record.feed_type}** · "
            f"{record.amount_kg:g} kg · {session.money(record.cost)} "
            f"({session.money(feed_unit_price(record))}/kg)"
        )
        if col2.button("Delete", key=f"delete_feed_{record.id}"):
            session.delete_feed(record.id)
            st.rerun()


def render_sales_page(session: FarmSession):
    st.title("💰 Sales")
    available = {p.id: p.tag_id for p in session.pigs(status=PigStatus.RAISING)}
    tags = {p.id: p.tag_id for p in session.snapshot.pigs}

    individual, bulk = st.tabs(["Single pig", "Bulk sale"])

    with individual:
        with st.form("add_sale", clear_on_submit=True):
            pig_id = st.selectbox(
                "Pig",
                options=list(available),
                format_func=lambda x: available[x],
            )
            sale_date = st.date_input("Sale date", value=date.today())
            sale_weight = st.number_input("Weight (kg)", min_value=0.0)
            price_per_kg = st.number_input("Price per kg", min_value=0.0)
            st.caption(f"Total: {session.money(sale_weight * price_per_kg)}")
            submitted = st.form_submit_button("Record sale")

        if submitted and pig_id:
            try:
                session.record_sale(pig_id, sale_date, sale_weight, price_per_kg)
                st.success(f"Sale recorded for {available[pig_id]}.")
            except RecordStoreError as e:
                st.error(str(e))

    with bulk:
        with st.form("add_bulk_sale", clear_on_submit=True):
            pig_ids = st.multiselect(
                "Pigs",
                options=list(available),
                format_func=lambda x: available[x],
            )
            sale_date = st.date_input("Sale date", value=date.today(), key="bulk_date")
            total_weight = st.number_input("Total weight (kg)", min_value=0.0)
            total_revenue = st.number_input("Total revenue", min_value=0.0)
            submitted = st.form_submit_button("Record bulk sale")

        if submitted:
            try:
                sales = session.record_bulk_sale(pig_ids, total_revenue, total_weight, sale_date)
                st.success(
                    f"{len(sales)} sales recorded, "
                    f"{session.money(sales[0].total_revenue)} each."
                )
            except (ValueError, RecordStoreError) as e:
                st.error(str(e))

    st.markdown("---")
    for sale in sorted(session.snapshot.sale_records, key=lambda s: s.sale_date, reverse=True):
        col1, col2 = st.columns([5, 1])
        col1.markdown(
            f"{sale.sale_date.isoformat()} · **{tags.get(sale.pig_id, 'Unknown pig')}** · "
            f"{sale.sale_weight:g} kg @ {session.money(sale.sale_price_per_kg)}/kg · "
            f"{session.money(sale.total_revenue)}"
        )
        if col2.button("Delete", key=f"delete_sale_{sale.id}"):
            session.delete_sale(sale.id)
            st.rerun()


def render_expenses_page(session: FarmSession):
    st.title("🧾 Other Expenses")

    with st.form("add_misc", clear_on_submit=True):
        expense_date = st.date_input("Date", value=date.today())
        item = st.text_input("Item")
        category = st.selectbox("Category", options=MISC_CATEGORY_PRESETS)
        cost = st.number_input("Cost", min_value=0.0)
        submitted = st.form_submit_button("Add expense")

    if submitted:
        if not item.strip():
            st.error("Item is required.")
        else:
            session.add_misc(MiscRecord(
                expense_date=expense_date,
                item=item,
                cost=cost,
                category=category,
            ))
            st.success("Expense recorded.")

    for record in sorted(session.snapshot.misc_records, key=lambda r: r.expense_date, reverse=True):
        col1, col2 = st.columns([5, 1])
        col1.markdown(
            f"{record.expense_date.isoformat()} · **{record.item}** "
            f"({record.category}) · {session.money(record.cost)}"
        )
        if col2.button("Delete", key=f"delete_misc_{record.id}"):
            session.delete_misc(record.id)
            st.rerun()


def render_system_page(session: FarmSession):
    st.title("⚙️ System")

    st.markdown("### Backup File")
    filename, content = session.export_payload()
    st.download_button(
        "⬇️ Export data",
        data=content,
        file_name=filename,
        mime="application/json",
    )

    uploaded = st.file_uploader("Import backup", type=["json"])
    confirm_import = st.checkbox(IMPORT_CONFIRM_PROMPT, key="confirm_import")
    if uploaded is not None and st.button("⬆️ Import"):
        show_result(session.import_backup(uploaded.getvalue(), confirm=lambda: confirm_import))

    st.markdown("---")
    st.markdown("### Configuration")
    if session.sync.is_authenticated:
        st.success("✅ Connected to Google Drive")
    client_id = st.text_input("Google Client ID", value=session.active_client_id())
    if st.button("Save Client ID"):
        show_result(session.set_client_id(client_id))

    st.markdown("### Cloud Backup")
    col1, col2, col3 = st.columns(3)
    if col1.button("🔑 Connect"):
        with st.spinner("Waiting for Google sign-in..."):
            show_result(run_async(session.connect_cloud()))
    if col2.button("☁️ Backup"):
        with st.spinner("Syncing to Drive..."):
            show_result(run_async(session.backup_to_cloud()))
    confirm_restore = st.checkbox(RESTORE_CONFIRM_PROMPT, key="confirm_restore")
    if col3.button("📥 Restore"):
        with st.spinner("Downloading backup..."):
            show_result(run_async(session.restore_from_cloud(confirm=lambda: confirm_restore)))

    if session.sync.last_synced:
        st.caption(f"Last synced {session.sync.last_synced.strftime('%Y-%m-%d %H:%M')}")

    with st.expander("Show Logs"):
        st.code("\n".join(session.activity_log.lines()) or "No sync activity yet.")

    st.markdown("### Settings Status")
    status = validate_all_settings()
    for key in ("app", "google_drive"):
        if status.get(key, False):
            st.success(f"✅ {key} settings loaded")
        else:
            st.error(f"❌ {key}: {status.get(f'{key}_error', 'Not configured')}")


if __name__ == "__main__":
    main()

"""
Streamlit GUI for the IPO Pool Tracker.

Launch with: ipo-pool-gui
Or: streamlit run src/ipo_pool/gui.py
"""

import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from ipo_pool.analytics import (
    account_summary,
    consolidated_participants,
    ipo_overview,
    participant_breakdown,
    summarize_ipo,
    workbook_totals,
)
from ipo_pool.config import ConfigurationError, load_settings
from ipo_pool.data import (
    DataLoadError,
    WorkbookStore,
    participant_report_frame,
    participant_report_table,
)
from ipo_pool.logging import DecisionLogger, get_logger
from ipo_pool.models import IPORecord, Workbook
from ipo_pool.pools import (
    ResultError,
    RosterError,
    account_participant_count,
    account_total,
    add_account,
    add_ipo,
    add_participant,
    delete_ipo,
    get_ipo,
    ownership_percentage,
    participants_in_account,
    record_result,
    remove_account,
    remove_participant,
    replace_ipo,
    result_for_account,
    shares_for_investment,
    unprocessed_accounts,
    update_ipo_details,
)
from ipo_pool.settlement import InvalidInputError

# Page configuration
st.set_page_config(
    page_title="IPO Pool Tracker",
    page_icon="📈",
    layout="wide",
    initial_sidebar_state="expanded",
)


def get_store() -> tuple[WorkbookStore, DecisionLogger, Decimal]:
    """Workbook store, decision logger and default commission from settings."""
    settings = load_settings()
    store = WorkbookStore(settings.workbook_path)
    return store, get_logger(settings.decision_log_path), settings.default_commission_rate


def save(store: WorkbookStore, workbook: Workbook) -> None:
    store.save(workbook)
    st.rerun()


def money(amount: Decimal) -> str:
    return f"₹{amount:,.2f}"


def parse_amount(text: str) -> Optional[Decimal]:
    """Parse a text input as a Decimal, None if it is not a number."""
    try:
        value = Decimal(text.strip().replace(",", ""))
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


def render_sidebar(workbook: Workbook, store: WorkbookStore, logger: DecisionLogger) -> Optional[str]:
    """Render the IPO selector. Returns the selected IPO id."""
    st.sidebar.title("📈 IPO Pool Tracker")
    st.sidebar.markdown("---")

    if st.sidebar.button("➕ New IPO", use_container_width=True):
        workbook, ipo = add_ipo(workbook)
        logger.log_ipo_created(ipo)
        st.session_state["selected_ipo"] = ipo.ipo_id
        save(store, workbook)

    if not workbook.ipos:
        st.sidebar.info("No IPOs added yet.")
        return None

    ids = [ipo.ipo_id for ipo in workbook.ipos]
    names = {ipo.ipo_id: ipo.details.name or "Untitled IPO" for ipo in workbook.ipos}
    default = st.session_state.get("selected_ipo")
    index = ids.index(default) if default in ids else 0

    selected = st.sidebar.radio(
        "IPOs",
        options=ids,
        index=index,
        format_func=lambda ipo_id: names[ipo_id],
    )
    st.session_state["selected_ipo"] = selected

    st.sidebar.markdown("---")
    totals = workbook_totals(workbook)
    st.sidebar.metric("Total Investment", money(totals["total_investment"]))
    st.sidebar.caption(
        f"{totals['ipo_count']} IPOs · {totals['account_count']} accounts · "
        f"{totals['total_participants']} participants"
    )
    return selected


def render_ipo_details(workbook: Workbook, ipo: IPORecord, store: WorkbookStore,
                       logger: DecisionLogger):
    """IPO name and lot terms, with the derived issue price."""
    st.subheader("IPO Details")
    terms = ipo.details.lot_terms

    with st.form(f"ipo_details_{ipo.ipo_id}"):
        name = st.text_input("IPO Name", value=ipo.details.name)
        col1, col2 = st.columns(2)
        with col1:
            lot_price = st.text_input("Lot Price (₹)", value=str(terms.lot_price))
        with col2:
            shares_per_lot = st.number_input(
                "Shares per Lot", min_value=0, step=1, value=terms.shares_per_lot
            )
        submitted = st.form_submit_button("💾 Save Details")

    if submitted:
        price = parse_amount(lot_price)
        if price is None or price < 0:
            st.error("Lot price must be a non-negative number.")
        else:
            workbook = update_ipo_details(
                workbook, ipo.ipo_id, name=name.strip(),
                lot_price=price, shares_per_lot=int(shares_per_lot),
            )
            logger.log_ipo_updated(ipo.ipo_id, get_ipo(workbook, ipo.ipo_id).details)
            save(store, workbook)

    st.metric("Issue Price (per share)", money(terms.issue_price))

    with st.expander("🗑️ Delete IPO"):
        st.warning("This removes the IPO with all of its participants and results.")
        if st.button("Delete this IPO", key=f"delete_{ipo.ipo_id}"):
            logger.log_ipo_deleted(ipo)
            st.session_state.pop("selected_ipo", None)
            save(store, delete_ipo(workbook, ipo.ipo_id))


def render_accounts(workbook: Workbook, ipo: IPORecord, store: WorkbookStore,
                    logger: DecisionLogger, default_commission: Decimal):
    """Demat accounts shared by every IPO."""
    st.subheader("Demat Accounts")

    with st.form("add_account", clear_on_submit=True):
        col1, col2, col3 = st.columns(3)
        with col1:
            account_name = st.text_input("Account Name")
        with col2:
            owner_name = st.text_input("Owner Name")
        with col3:
            rate_text = st.text_input("Commission Rate (%)", value=str(default_commission))
        submitted = st.form_submit_button("➕ Add Account")

    if submitted:
        rate = parse_amount(rate_text)
        if rate is None:
            st.error("Commission rate must be a number.")
        else:
            try:
                workbook, account = add_account(workbook, account_name, owner_name, rate)
            except RosterError as e:
                st.error(str(e))
            else:
                logger.log_account_added(account)
                save(store, workbook)

    if not workbook.demat_accounts:
        st.info("No demat accounts added yet.")
        return

    for account in workbook.demat_accounts:
        col1, col2, col3, col4 = st.columns([3, 2, 2, 1])
        count = account_participant_count(ipo.participants, account.account_id)
        with col1:
            st.markdown(f"**{account.account_name}** · {account.owner_name}")
        with col2:
            st.caption(f"Commission: {account.commission_rate}%")
        with col3:
            st.caption(
                f"{count} participants · {money(account_total(ipo.participants, account.account_id))}"
            )
        with col4:
            if st.button("🗑️", key=f"remove_account_{account.account_id}"):
                try:
                    updated = remove_account(workbook, account.account_id)
                except RosterError as e:
                    st.error(f"Cannot delete: {e}")
                else:
                    logger.log_account_removed(account.account_id)
                    save(store, updated)


def render_participants(workbook: Workbook, ipo: IPORecord, store: WorkbookStore,
                        logger: DecisionLogger):
    """Participants of the selected IPO, grouped by demat account."""
    st.subheader("Participants")

    if not workbook.demat_accounts:
        st.info("Add a demat account before adding participants.")
        return

    terms = ipo.details.lot_terms
    account_ids = [a.account_id for a in workbook.demat_accounts]
    account_names = {a.account_id: a.account_name for a in workbook.demat_accounts}

    with st.form("add_participant", clear_on_submit=True):
        col1, col2, col3 = st.columns(3)
        with col1:
            name = st.text_input("Participant Name")
        with col2:
            amount_text = st.text_input("Investment Amount (₹)")
        with col3:
            account_id = st.selectbox(
                "Demat Account", options=account_ids,
                format_func=lambda a: account_names[a],
            )
        submitted = st.form_submit_button("➕ Add Participant")

    if submitted:
        amount = parse_amount(amount_text)
        if amount is None:
            st.error("Investment amount must be a number.")
        else:
            try:
                participants, participant = add_participant(
                    list(ipo.participants), workbook.demat_accounts, name, amount, account_id
                )
            except RosterError as e:
                st.error(str(e))
            else:
                logger.log_participant_added(ipo.ipo_id, participant)
                save(store, replace_ipo(workbook, ipo.with_participants(participants)))

    if not ipo.participants:
        st.info("No participants in this IPO yet.")
        return

    for account in workbook.demat_accounts:
        members = participants_in_account(ipo.participants, account.account_id)
        if not members:
            continue

        pool_total = account_total(members, account.account_id)
        st.markdown(f"#### {account.account_name} · {money(pool_total)}")
        for participant in members:
            col1, col2, col3, col4, col5 = st.columns([3, 2, 2, 2, 1])
            others = [p for p in members if p.participant_id != participant.participant_id]
            with col1:
                st.write(participant.name)
            with col2:
                st.write(money(participant.investment_amount))
            with col3:
                st.caption(f"{shares_for_investment(participant.investment_amount, terms):,.2f} shares")
            with col4:
                pct = ownership_percentage(
                    participant.investment_amount, account.account_id, others
                )
                st.caption(f"{pct:.2f}% of pool")
            with col5:
                if st.button("🗑️", key=f"remove_participant_{participant.participant_id}"):
                    participants = remove_participant(
                        list(ipo.participants), participant.participant_id
                    )
                    logger.log_participant_removed(ipo.ipo_id, participant.participant_id)
                    save(store, replace_ipo(workbook, ipo.with_participants(participants)))


def render_results(workbook: Workbook, ipo: IPORecord, store: WorkbookStore,
                   logger: DecisionLogger):
    """Record or re-record the allotment result of each pool."""
    st.subheader("IPO Results")

    pending = unprocessed_accounts(ipo, workbook.demat_accounts)
    if pending:
        st.warning(
            "Pending results: " + ", ".join(a.account_name for a in pending)
        )

    for account in workbook.demat_accounts:
        members = participants_in_account(ipo.participants, account.account_id)
        if not members:
            continue

        existing = result_for_account(ipo, account.account_id)
        label = f"{account.account_name} · {money(account_total(members, account.account_id))}"
        if existing is not None:
            label += " · " + ("Allotted" if existing.is_allotted else "Not Allotted")

        with st.expander(label, expanded=existing is None):
            with st.form(f"result_{account.account_id}"):
                status = st.radio(
                    "Status", ["Allotted", "Not Allotted"], horizontal=True,
                    index=0 if existing is None or existing.is_allotted else 1,
                )
                price_text = st.text_input(
                    "Selling Price per Share (₹)",
                    value=str(existing.selling_price) if existing and existing.selling_price else "",
                )
                submitted = st.form_submit_button("💾 Record Result")

            if submitted:
                allotted = status == "Allotted"
                price = parse_amount(price_text) if price_text.strip() else None
                if allotted and price is None:
                    st.error("Please enter a selling price for an allotted result.")
                    continue
                try:
                    updated, result = record_result(ipo, account, allotted, price)
                except (ResultError, InvalidInputError) as e:
                    st.error(str(e))
                    continue
                logger.log_result_recorded(
                    ipo.ipo_id, result, account_total(members, account.account_id)
                )
                save(store, replace_ipo(workbook, updated))

            if existing is not None:
                col1, col2 = st.columns(2)
                col1.metric("Final Amount", money(existing.final_amount))
                col2.metric("Commission", money(existing.commission_deducted))


def render_profit_chart(report_df: pd.DataFrame):
    """Render per-participant profit/loss as a bar chart."""
    colors = ["#2ca02c" if v >= 0 else "#d62728" for v in report_df["Profit/Loss"]]

    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=report_df["Participant"],
        y=report_df["Profit/Loss"],
        marker_color=colors,
        hovertemplate="%{x}<br>₹%{y:,.2f}<extra></extra>",
    ))
    fig.update_layout(
        title="Profit / Loss by Participant",
        xaxis_title="Participant",
        yaxis_title="Profit / Loss (₹)",
        height=400,
    )
    st.plotly_chart(fig, use_container_width=True)


def render_final_report(workbook: Workbook, ipo: IPORecord, logger: DecisionLogger):
    """Summary metrics, individual returns, and CSV download."""
    st.subheader(f"Final Report · {ipo.details.name}")

    try:
        summary = summarize_ipo(ipo)
        rows = participant_breakdown(ipo, workbook.demat_accounts)
    except InvalidInputError as e:
        st.error(f"Cannot build report: {e}")
        return

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total Investment", money(summary["total_investment"]))
    col2.metric("Total Returns", money(summary["total_returns"]))
    col3.metric("Net Profit/Loss", money(summary["net_profit"]))
    col4.metric("Commission Paid", money(summary["total_commission"]))
    st.caption(
        f"Lots applied: {summary['total_lots_applied']} · "
        f"Allotted accounts: {summary['allotted_count']} · "
        f"Non-allotted accounts: {summary['not_allotted_count']}"
    )

    if not rows:
        st.info("No results available yet. Record IPO results to see individual breakdowns.")
        return

    report_df = participant_report_frame(rows)
    st.dataframe(report_df, use_container_width=True, hide_index=True)
    render_profit_chart(report_df)

    summary_df = pd.DataFrame([
        {
            "Account": r.account_name,
            "Owner": r.owner_name,
            "Participants": ", ".join(r.participant_names),
            "Total Investment": float(r.total_investment),
            "Status": r.status,
            "Final Amount": float(r.final_amount),
            "Commission": float(r.commission_deducted),
            "Net Profit/Loss": float(r.net_profit),
        }
        for r in account_summary(ipo, workbook.demat_accounts)
    ])
    st.markdown("#### Account Summary")
    st.dataframe(summary_df, use_container_width=True, hide_index=True)

    export_df = participant_report_table(rows)
    slug = (ipo.details.name or "report").strip().replace(" ", "-").lower()
    if st.download_button(
        "📥 Export CSV",
        data=export_df.to_csv(index=False),
        file_name=f"ipo-final-report-{slug}.csv",
        mime="text/csv",
    ):
        logger.log_report_exported(ipo.ipo_id, f"download:{slug}", len(rows))


def render_consolidated(workbook: Workbook):
    """Overview of every IPO and each participant across IPOs."""
    st.subheader("All IPOs")

    overview = ipo_overview(workbook.ipos)
    if not overview:
        st.info("No IPOs added yet.")
        return

    st.dataframe(
        pd.DataFrame([
            {
                "IPO": row["name"],
                "Status": row["status"],
                "Participants": row["participant_count"],
                "Total Investment": float(row["total_investment"]),
                "Total Shares": float(row["total_shares"]),
                "Results": row["results_count"],
            }
            for row in overview
        ]),
        use_container_width=True,
        hide_index=True,
    )

    st.subheader("Consolidated Participants")
    try:
        people = consolidated_participants(workbook.ipos, workbook.demat_accounts)
    except InvalidInputError as e:
        st.error(f"Cannot build consolidated view: {e}")
        return

    records = []
    for person in people:
        record = {
            "Participant": person.name,
            "Demat Account": person.account_name,
        }
        for ipo in workbook.ipos:
            entry = person.entries.get(ipo.ipo_id)
            record[ipo.details.name or ipo.ipo_id[:8]] = (
                f"{money(entry.investment)} · {entry.status}" if entry else "-"
            )
        record["Total Investment"] = float(person.total_investment)
        record["Total Profit/Loss"] = float(person.total_profit)
        records.append(record)

    st.dataframe(pd.DataFrame(records), use_container_width=True, hide_index=True)


def main_page():
    """Main page content."""
    try:
        store, logger, default_commission = get_store()
        workbook = store.load()
    except (ConfigurationError, DataLoadError) as e:
        st.error(f"Failed to load workbook: {e}")
        return

    selected = render_sidebar(workbook, store, logger)

    st.title("IPO Pool Tracker")
    st.markdown("Track pooled IPO applications, record allotments and split the returns.")

    if selected is None:
        render_consolidated(workbook)
        return

    ipo = get_ipo(workbook, selected)
    tabs = st.tabs([
        "📝 IPO Details", "🏦 Demat Accounts", "👥 Participants",
        "🎯 Results", "📊 Final Report", "🗂️ All IPOs",
    ])

    with tabs[0]:
        render_ipo_details(workbook, ipo, store, logger)
    with tabs[1]:
        render_accounts(workbook, ipo, store, logger, default_commission)
    with tabs[2]:
        render_participants(workbook, ipo, store, logger)
    with tabs[3]:
        render_results(workbook, ipo, store, logger)
    with tabs[4]:
        render_final_report(workbook, ipo, logger)
    with tabs[5]:
        render_consolidated(workbook)


def main():
    """Entry point for the GUI."""
    # Check if running via streamlit
    if st.runtime.exists():
        main_page()
    else:
        # Launch streamlit
        import subprocess
        gui_path = Path(__file__).resolve()
        subprocess.run([
            sys.executable, "-m", "streamlit", "run",
            str(gui_path),
            "--server.headless", "true",
        ])


if __name__ == "__main__":
    main_page()

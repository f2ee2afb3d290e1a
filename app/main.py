import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import datetime, time as dtime
import logging

import streamlit as st
import pandas as pd
import numpy as np
import plotly.graph_objects as go
import plotly.express as px

from fintrack.config import SEED_PATH, CURRENCY, DEFAULT_USER_ID, configure_logging
from fintrack.domain import Bill, Budget, PeriodKind, Subscription, Transaction
from fintrack.errors import ConfigurationError
from fintrack.functional import safe_category
from fintrack.services import DashboardService
from fintrack.storage import load_seed

configure_logging()
logger = logging.getLogger("fintrack.app")

st.set_page_config(page_title="Finance Dashboard", layout="wide")

if "store" not in st.session_state:
    st.session_state.store = load_seed(SEED_PATH)

store = st.session_state.store
svc = DashboardService(store)
categories = store.list_categories()

st.sidebar.markdown("### 👤 Profile")
user_id = st.sidebar.text_input("User ID", value=st.session_state.get("user_id", DEFAULT_USER_ID))
st.session_state["user_id"] = user_id
now = datetime.now()
st.sidebar.caption(f"Evaluated at {now:%Y-%m-%d %H:%M}")


def money(x) -> str:
    return f"{x:,.2f} {CURRENCY}"


def days(n) -> str:
    return f"{n} day" if n == 1 else f"{n} days"


def category_name(cat_id) -> str:
    if cat_id is None:
        return "All categories"
    return safe_category(categories, cat_id).map(lambda c: c.name).get_or_else(cat_id)


def show_form_error(result) -> bool:
    if result.is_left():
        st.error(f"❌ {result.get_error()['message']}")
        return True
    return False


TIER_COLORS = {"normal": "#22c55e", "warning": "#f59e0b", "critical": "#ef4444"}
STATUS_BADGES = {
    "settled": "✅ Paid",
    "overdue": "🔴 Overdue",
    "due_today": "🟠 Due Today",
    "due_soon": "🟡 Due Soon",
    "upcoming": "🔵 Upcoming",
}

menu = st.sidebar.radio(
    "Menu",
    ["🏠 Overview", "💰 Budgets", "🧾 Bills", "🔁 Subscriptions", "🎯 Goals", "💸 Transactions"]
)

if menu == "🏠 Overview":
    st.title("🏠 Overview")
    summary = svc.summary(user_id, now)
    k1, k2, k3, k4 = st.columns(4)
    with k1:
        st.metric("Balance (this month)", money(summary["balance"]))
    with k2:
        st.metric("Income", money(summary["income"]))
    with k3:
        st.metric("Spending", money(summary["spending"]))
    with k4:
        st.metric("Savings Rate", f"{summary['savings_rate']}%")

    alerts = svc.alerts(user_id, now)
    if alerts:
        st.subheader("⚠️ Alerts")
        for a in alerts:
            if a["severity"] == "critical":
                st.error(a["alert"])
            else:
                st.warning(a["alert"])

    tx = store.list_transactions(user_id)
    df = pd.DataFrame([{
        "date": t.occurred_at,
        "amount": t.amount,
        "direction": "Expense" if t.is_outflow else "Income",
        "category": category_name(t.category_id),
    } for t in tx])

    end = pd.Timestamp(now).normalize()
    months = pd.date_range(end=end, periods=6, freq="MS")
    if not df.empty:
        monthly = df.set_index("date").groupby("direction").resample("MS")["amount"].sum()
        inc_m = monthly.get("Income", pd.Series(dtype=float)).reindex(months, fill_value=0)
        exp_m = monthly.get("Expense", pd.Series(dtype=float)).reindex(months, fill_value=0)
    else:
        inc_m = pd.Series(np.zeros(len(months)), index=months)
        exp_m = pd.Series(np.zeros(len(months)), index=months)

    fig_ts = go.Figure()
    fig_ts.add_trace(go.Scatter(x=[m.strftime("%b %y") for m in months], y=inc_m.values, mode="lines+markers", name="Income"))
    fig_ts.add_trace(go.Scatter(x=[m.strftime("%b %y") for m in months], y=exp_m.values, mode="lines+markers", name="Expense"))
    fig_ts.update_layout(template="plotly_dark", margin=dict(t=30, b=10, l=10, r=10))
    st.plotly_chart(fig_ts, use_container_width=True)

    breakdown = svc.category_breakdown(user_id, now, k=6)
    if breakdown:
        fig_cat = px.pie(pd.DataFrame(breakdown), values="spent", names="category", title="Spending by category (this month)")
        st.plotly_chart(fig_cat, use_container_width=True)
    else:
        st.info("No spending recorded this month.")

elif menu == "💰 Budgets":
    st.title("💰 Budgets")

    with st.form("budget_form", clear_on_submit=True):
        col1, col2, col3 = st.columns(3)
        with col1:
            name = st.text_input("Name")
        with col2:
            limit_amount = st.number_input("Limit", min_value=0.0, step=10.0)
            period = st.selectbox("Period", [p.value for p in PeriodKind], index=1)
        with col3:
            cat_label = st.selectbox("Category", ["All categories"] + [c.name for c in categories])
        if st.form_submit_button("Add Budget"):
            cat_id = next((c.id for c in categories if c.name == cat_label), None)
            result = store.create_budget(Budget(
                id="", user_id=user_id, name=name or cat_label,
                limit_amount=limit_amount, period=PeriodKind(period), category_id=cat_id,
            ))
            if not show_form_error(result):
                st.success("✅ Budget added")

    try:
        rows = svc.budget_overview(user_id, now)
    except ConfigurationError as e:
        logger.warning("Budget overview failed: %s", e)
        st.error(f"❌ {e}")
        rows = []

    if rows:
        for row in rows:
            st.write(f"**{row['name']}** · {row['period']} · {category_name(row['category_id'])}")
            st.progress(row["percentage"] / 100)
            caption = f"{money(row['spent'])} / {money(row['limit_amount'])} · {round(row['percentage'])}% used"
            if row["overage"] > 0:
                caption += f" · exceeded by {money(row['overage'])}"
            st.caption(caption)

        df_b = pd.DataFrame(rows)
        fig = px.bar(
            df_b, x="name", y="percentage", color="tier",
            color_discrete_map=TIER_COLORS, range_y=[0, 100],
            title="Budget usage (%)", template="plotly_dark",
        )
        st.plotly_chart(fig, use_container_width=True)
    else:
        st.info("No budgets defined")

elif menu == "🧾 Bills":
    st.title("🧾 Bills")

    with st.form("bill_form", clear_on_submit=True):
        col1, col2, col3 = st.columns(3)
        with col1:
            name = st.text_input("Name")
        with col2:
            amount = st.number_input("Amount", min_value=0.0, step=5.0)
        with col3:
            due = st.date_input("Due date")
        category = st.text_input("Category", value="Utilities")
        if st.form_submit_button("Add Bill"):
            result = store.create_bill(Bill(
                id="", user_id=user_id, name=name, amount=amount,
                due_at=datetime.combine(due, dtime.min), category=category,
            ))
            if not show_form_error(result):
                st.success("✅ Bill added")

    rows = svc.bill_overview(user_id, now)
    if rows:
        for row in rows:
            c1, c2, c3, c4 = st.columns([3, 2, 2, 1])
            c1.write(f"**{row['name']}** · {row['category']}")
            c2.write(money(row["amount"]))
            if row["status"] == "overdue":
                c3.write(f"{STATUS_BADGES['overdue']} by {days(row['overdue_by_days'])}")
            elif row["status"] in ("due_soon", "upcoming"):
                c3.write(f"{STATUS_BADGES[row['status']]} · in {days(row['days_remaining'])}")
            else:
                c3.write(STATUS_BADGES[row["status"]])
            label = "Unpay" if row["is_paid"] else "Pay"
            if c4.button(label, key=f"pay_{row['bill_id']}"):
                store.mark_bill_paid(row["bill_id"], not row["is_paid"])
                st.rerun()
    else:
        st.info("No bills yet")

elif menu == "🔁 Subscriptions":
    st.title("🔁 Subscriptions")
    summary = svc.summary(user_id, now)
    st.metric("Monthly cost", money(summary["subscription_monthly_cost"]))

    with st.form("subscription_form", clear_on_submit=True):
        col1, col2, col3 = st.columns(3)
        with col1:
            name = st.text_input("Name")
            category = st.text_input("Category", value="Entertainment")
        with col2:
            amount = st.number_input("Amount", min_value=0.0, step=1.0)
            cycle = st.selectbox("Billing cycle", [p.value for p in PeriodKind], index=1)
        with col3:
            first = st.date_input("Last billing date")
        if st.form_submit_button("Add Subscription"):
            result = store.create_subscription(Subscription(
                id="", user_id=user_id, name=name, amount=amount,
                billing_cycle=PeriodKind(cycle), due_at=datetime.combine(first, dtime.min),
                category=category,
            ))
            if not show_form_error(result):
                st.success("✅ Subscription added")

    rows = svc.subscription_overview(user_id, now)
    if rows:
        df_s = pd.DataFrame(rows)
        df_s["next_due_at"] = pd.to_datetime(df_s["next_due_at"], errors="coerce").dt.strftime("%Y-%m-%d").fillna("-")
        df_s["status"] = df_s["status"].map(lambda s: STATUS_BADGES.get(s, "-"))
        df_s["amount"] = df_s["amount"].map(money)
        st.table(df_s[["name", "amount", "billing_cycle", "subscription_status", "next_due_at", "status"]])
        if "error" in df_s.columns and df_s["error"].notna().any():
            st.error("Some billing dates could not be projected; check their last billing date.")
    else:
        st.info("No subscriptions yet")

elif menu == "🎯 Goals":
    st.title("🎯 Goals")
    rows = svc.goal_overview(user_id, now)
    if rows:
        for row in rows:
            st.write(f"**{row['name']}** · {money(row['current_amount'])} / {money(row['target_amount'])}")
            st.progress(row["progress"] / 100)
            if row["is_complete"]:
                st.caption("🎉 Goal reached")
            elif row["days_remaining"] is not None:
                st.caption(f"{money(row['remaining'])} to go · {days(row['days_remaining'])} left")
    else:
        st.info("Set your first savings goal to start tracking progress.")

elif menu == "💸 Transactions":
    st.title("💸 Transactions")

    with st.form("tx_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            date = st.date_input("Date")
            amount = st.number_input("Amount", min_value=0.0, step=1.0, format="%.2f")
        with col2:
            category = st.selectbox("Category", [c.name for c in categories])
            direction = st.radio("Type", ["Expense", "Income"], horizontal=True)
        description = st.text_input("Description (optional)")
        if st.form_submit_button("Add Transaction"):
            cat_id = next(c.id for c in categories if c.name == category)
            result = store.create_transaction(Transaction(
                id="", user_id=user_id, amount=amount,
                occurred_at=datetime.combine(date, datetime.now().time()),
                is_outflow=direction == "Expense", category_id=cat_id,
                description=description or "",
            ))
            if not show_form_error(result):
                st.success("✅ Transaction added!")

    tx = sorted(store.list_transactions(user_id), key=lambda t: t.occurred_at, reverse=True)
    if tx:
        disp = pd.DataFrame([{
            "Date": t.occurred_at.strftime("%Y-%m-%d"),
            "Description": t.description,
            "Category": category_name(t.category_id),
            "Amount": ("-" if t.is_outflow else "+") + money(t.amount),
        } for t in tx])
        st.dataframe(disp, use_container_width=True)
        st.download_button("⬇ Download CSV", disp.to_csv(index=False), file_name="transactions.csv")
    else:
        st.info("No transactions yet")

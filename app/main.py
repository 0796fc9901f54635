import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio
import base64
import logging
from datetime import date

import pandas as pd
import plotly.express as px
import streamlit as st

from calccore.config import Config
from calccore.domain import CATEGORIES, EXPENSE, INCOME, ImagePayload
from calccore.errors import ValidationError
from calccore.formulas import COMPOUND, SIMPLE
from calccore.session import CalculationSession, FIND_PERCENT, FIND_VALUE, LUMPSUM, SIP, live_session
from calccore.units import DIMENSIONS, units_of

logging.basicConfig(level=Config.LOG_LEVEL)
logger = logging.getLogger("calc-suite")

st.set_page_config(page_title="Calc Suite", layout="wide")

if "session" not in st.session_state:
    st.session_state.session = live_session()
    asyncio.run(st.session_state.session.refresh_rates())

session: CalculationSession = st.session_state.session


def attempt(action):
    """Run a session call and show validation problems instead of crashing the page."""
    try:
        return action()
    except ValidationError as e:
        st.error(f"❌ {e.message}")
        return None


menu = st.sidebar.radio(
    "Tools",
    [
        "🧮 Standard", "✨ AI Math", "％ Percentage", "💱 Currency", "📏 Units", "💳 EMI Loan",
        "🏷 Discount", "📈 Interest", "💹 Investment", "⚖️ BMI", "📅 Age", "💰 Budget",
    ],
)

with st.sidebar.expander("🕘 History", expanded=False):
    entries = session.history.all()
    if entries:
        for h in entries:
            st.caption(f"{h.timestamp:%H:%M:%S} · {h.tool}")
            st.write(f"{h.expression} → **{h.result}**")
        if st.button("Clear history"):
            session.clear_history()
            st.rerun()
    else:
        st.info("No calculations yet.")

if menu == "🧮 Standard":
    st.title("🧮 Standard")
    expr = st.text_input("Expression", value="", placeholder="12×(3+4)÷2")
    if st.button("="):
        res = attempt(lambda: session.calculate(expr))
        if res is not None:
            st.metric("Result", f"{res:g}")

elif menu == "✨ AI Math":
    st.title("✨ AI Math")
    query = st.text_area("Problem", placeholder="Type a problem (e.g., '5kg + 200g in g', 'sqrt(144)')...")
    upload = st.file_uploader("Image", type=["png", "jpg", "jpeg", "webp"])
    if st.button("Solve"):
        image = None
        if upload is not None:
            image = ImagePayload(mime_type=upload.type, data=base64.b64encode(upload.getvalue()).decode("ascii"))
        with st.spinner("Thinking..."):
            outcome = attempt(lambda: asyncio.run(session.solve(query, image)))
        if outcome is not None and not outcome.superseded:
            if outcome.solved:
                st.markdown(outcome.text)
            else:
                st.warning(outcome.text)

elif menu == "％ Percentage":
    st.title("％ Percentage")
    mode = st.radio("Mode", [FIND_VALUE, FIND_PERCENT],
                    format_func=lambda m: "X% of Y" if m == FIND_VALUE else "X is what % of Y", horizontal=True)
    c1, c2 = st.columns(2)
    v1 = c1.text_input("X", value="")
    v2 = c2.text_input("Y", value="")
    if st.button("Calculate"):
        res = attempt(lambda: session.percentage(mode, v1, v2))
        if res is not None:
            st.metric("Result", f"{res:.2f}" + ("%" if mode == FIND_PERCENT else ""))

elif menu == "💱 Currency":
    st.title("💱 Currency")
    k1, k2 = st.columns([3, 1])
    k1.caption(("🟢 " if session.rates.is_live else "🟠 ") + session.rates.status())
    if k2.button("🔄 Refresh rates"):
        asyncio.run(session.refresh_rates())
        st.rerun()
    codes = list(session.rates.codes())
    c1, c2, c3 = st.columns(3)
    amount = c1.text_input("Amount", value="1")
    src = c2.selectbox("From", codes, index=codes.index("USD") if "USD" in codes else 0)
    dst = c3.selectbox("To", codes, index=codes.index("INR") if "INR" in codes else 0)
    if st.button("Convert Now"):
        res = attempt(lambda: session.convert_currency(amount, src, dst))
        if res is not None:
            st.metric(f"{amount} {src}", f"{res:,.2f} {dst}")
            st.caption(f"1 {src} = {session.rates.cross_rate(src, dst):.4f} {dst}")

elif menu == "📏 Units":
    st.title("📏 Units")
    dimension = st.selectbox("Type", DIMENSIONS)
    units = list(units_of(dimension))
    c1, c2, c3 = st.columns(3)
    value = c1.text_input("Value", value="0")
    src = c2.selectbox("From", units, index=0)
    dst = c3.selectbox("To", units, index=min(1, len(units) - 1))
    if st.button("Convert"):
        res = attempt(lambda: session.convert_unit(value, src, dst, dimension))
        if res is not None:
            st.metric(f"{value} {src}", f"{res:.4f} {dst}")

elif menu == "💳 EMI Loan":
    st.title("💳 EMI Loan")
    st.caption("EMI = P × R × (1+R)^N / ((1+R)^N − 1), R = Rate/12/100, N = Months")
    c1, c2, c3 = st.columns(3)
    amount = c1.number_input("Loan amount", min_value=0.0, value=100000.0, step=1000.0)
    rate = c2.number_input("Interest rate (%)", min_value=0.0, value=10.0, step=0.5)
    tenure = c3.number_input("Tenure (months)", min_value=1, value=12, step=1)
    if st.button("Calculate EMI"):
        res = attempt(lambda: session.emi(amount, rate, tenure))
        if res is not None:
            st.metric("Monthly EMI", f"{res:,.2f}")

elif menu == "🏷 Discount":
    st.title("🏷 Discount")
    c1, c2 = st.columns(2)
    price = c1.text_input("Price", value="")
    pct = c2.text_input("Discount (%)", value="")
    if st.button("Apply"):
        res = attempt(lambda: session.discount(price, pct))
        if res is not None:
            k1, k2 = st.columns(2)
            k1.metric("You save", f"{res.saved:,.2f}")
            k2.metric("Final price", f"{res.final:,.2f}")

elif menu == "📈 Interest":
    st.title("📈 Interest")
    kind = st.radio("Type", [SIMPLE, COMPOUND], horizontal=True)
    c1, c2, c3 = st.columns(3)
    p = c1.number_input("Principal", value=10000.0, step=500.0)
    r = c2.number_input("Rate (%)", value=5.0, step=0.5)
    t = c3.number_input("Time (years)", value=1.0, step=1.0)
    if st.button("Calculate"):
        res = attempt(lambda: session.interest(kind, p, r, t))
        if res is not None:
            k1, k2 = st.columns(2)
            k1.metric("Interest", f"{res.interest:,.2f}")
            k2.metric("Total", f"{res.total:,.2f}")

elif menu == "💹 Investment":
    st.title("💹 Investment")
    mode = st.radio("Mode", [SIP, LUMPSUM], format_func=str.upper, horizontal=True)
    c1, c2, c3, c4 = st.columns(4)
    initial = c1.number_input("Initial", min_value=0.0, value=10000.0, step=1000.0)
    monthly = c2.number_input("Monthly", min_value=0.0, value=1000.0, step=100.0, disabled=mode == LUMPSUM)
    rate = c3.number_input("Exp. return (% yr)", value=12.0, step=0.5)
    years = c4.number_input("Years", min_value=1, value=5, step=1)
    if st.button("Project"):
        res = attempt(lambda: session.investment(mode, initial, monthly, rate, years))
        if res is not None:
            k1, k2, k3 = st.columns(3)
            k1.metric("Invested", f"{res.invested:,.0f}")
            k2.metric("Gains", f"{res.gains:,.0f}")
            k3.metric("Total value", f"{res.total:,.0f}")
            fig = px.pie(values=[res.invested, max(res.gains, 0)], names=["Invested", "Gains"], hole=0.5)
            st.plotly_chart(fig, use_container_width=True)

elif menu == "⚖️ BMI":
    st.title("⚖️ BMI")
    c1, c2 = st.columns(2)
    weight = c1.text_input("Weight (kg)", value="")
    height = c2.text_input("Height (cm)", value="")
    if st.button("Check BMI"):
        res = attempt(lambda: session.bmi(weight, height))
        if res is not None:
            st.metric("Your score", f"{res.value:.1f}", res.category, delta_color="off")

elif menu == "📅 Age":
    st.title("📅 Age")
    born = st.date_input("Date of birth", value=date(2000, 1, 1), min_value=date(1900, 1, 1))
    if st.button("Calculate"):
        res = attempt(lambda: session.age(born))
        if res is not None:
            k1, k2, k3 = st.columns(3)
            k1.metric("Years", res.years)
            k2.metric("Months", res.months)
            k3.metric("Days", res.days)

elif menu == "💰 Budget":
    st.title("💰 Budget")
    summary = session.summary()
    k1, k2, k3 = st.columns(3)
    k1.metric("Balance", f"{summary.balance:,.0f}")
    k2.metric("Income", f"+{summary.total_income:,.0f}")
    k3.metric("Expense", f"-{summary.total_expense:,.0f}")

    kind = st.radio("Type", [EXPENSE, INCOME], format_func=str.title, horizontal=True)
    with st.form("tx_form", clear_on_submit=True):
        c1, c2, c3 = st.columns([3, 2, 2])
        desc = c1.text_input("Description")
        amount = c2.text_input("Amount")
        category = c3.selectbox("Category", CATEGORIES[kind])
        if st.form_submit_button("Add Transaction"):
            if attempt(lambda: session.add_transaction(desc, amount, kind, category)) is not None:
                st.rerun()

    slices = session.chart_breakdown()
    if slices:
        st.subheader("Spending breakdown")
        df = pd.DataFrame([{"Category": s.label, "Amount": s.value, "Share": s.share} for s in slices])
        fig = px.pie(df, values="Amount", names="Category", color="Category",
                     color_discrete_map={s.label: s.color for s in slices}, hole=0.4)
        st.plotly_chart(fig, use_container_width=True)

    st.subheader("Transactions")
    if not session.ledger.transactions:
        st.info("No transactions yet.")
    for t in session.ledger.transactions:
        c1, c2, c3 = st.columns([4, 2, 1])
        c1.write(f"**{t.description}**  \n{t.category} · {t.created_at:%Y-%m-%d %H:%M}")
        c2.write(("+" if t.kind == INCOME else "-") + f"{t.amount:,.2f}")
        if c3.button("🗑", key=f"del_{t.id}"):
            session.remove_transaction(t.id)
            st.rerun()

import streamlit as st
import pandas as pd

from music_admin.core.errors import BackendError, SessionExpired
from music_admin.services.report_service import format_currency, report_service, revenue_frame

# Page Config
st.set_page_config(
    page_title="Music School Reports",
    page_icon="🎵",
    layout="wide"
)

st.title("Music School - Financial Report")

col_from, col_to = st.columns(2)
date_from = col_from.date_input("From", value=None)
date_to = col_to.date_input("To", value=None)

if st.button("Refresh data"):
    report_service.cache.invalidate()
    st.rerun()

try:
    stats = report_service.summary()
    reports = report_service.revenue(
        date_from.isoformat() if date_from else None,
        date_to.isoformat() if date_to else None,
    )
except SessionExpired as e:
    st.error(f"{e.message}. Log in through the admin API first.")
    st.stop()
except BackendError as e:
    st.error(f"Failed to load report: {e.message}")
    st.stop()

# Metrics
col1, col2, col3, col4 = st.columns(4)
col1.metric("Total revenue", format_currency(stats.total_revenue))
col2.metric("Bookings", stats.total_bookings)
col3.metric("Students", stats.total_students)
col4.metric("Courses", stats.total_courses)

col5, col6, col7 = st.columns(3)
col5.metric("Pending", stats.pending_bookings)
col6.metric("Completed", stats.completed_bookings)
col7.metric("Cancelled", stats.cancelled_bookings)

st.subheader("Revenue by period")
df: pd.DataFrame = revenue_frame(reports)

if not df.empty:
    st.dataframe(
        df,
        use_container_width=True,
        column_config={
            "period": "Period",
            "total_revenue": st.column_config.NumberColumn("Total revenue", format="Rp %d"),
            "booking_count": "Bookings",
            "course_revenue": st.column_config.NumberColumn("Course revenue", format="Rp %d"),
            "average_per_booking": st.column_config.NumberColumn("Avg / booking", format="Rp %d"),
        }
    )
else:
    st.info("No revenue data found for the selected period.")

st.markdown("---")
st.caption("Music School Admin • read-only report")

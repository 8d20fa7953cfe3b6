# app.py
import time

import numpy as np
import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from config import ALERT_DISPLAY_SECONDS
from hazardmon import db
from hazardmon.adapters.user import SubmissionRejected
from hazardmon.ingest import ShellFeed
from hazardmon.schema import CATEGORIES, SEVERITIES, SEVERITY_RANK
from hazardmon.search import filter_events, to_frame, with_coordinates


# ----------------------------
# THEME + UX (dark)
# ----------------------------
def apply_theme():
    st.markdown(
        """
        <style>
        :root{
          --bg:#010810;
          --panel:#020c1a;
          --panel2:#0c1e37;
          --text:#9ab8cc;
          --border:rgba(0,140,255,.12);
          --accent:#00aaff;
        }

        html, body, [class*="stApp"]{
          background: var(--bg) !important;
          color: var(--text) !important;
          font-family: "IBM Plex Mono", "Courier New", monospace !important;
        }

        [data-testid="stSidebar"]{
          background: var(--panel) !important;
          border-right: 1px solid var(--border) !important;
        }
        [data-testid="stSidebar"] *{ color: var(--text) !important; }

        [data-testid="stMetric"]{
          background: var(--panel) !important;
          border: 1px solid var(--border) !important;
          border-radius: 12px !important;
          padding: 14px 14px !important;
        }

        .alert-banner{
          background: linear-gradient(90deg, #8b0010, #cc0020, #8b0010);
          color: #fff !important;
          padding: 7px 20px;
          font-weight: bold;
          letter-spacing: .12em;
          text-align: center;
          border-radius: 6px;
        }
        .badge{
          display:inline-block; padding:2px 8px; margin-right:6px;
          border-radius:6px; border:1px solid var(--border); font-size:.8rem;
        }
        a{ color: var(--accent) !important; text-decoration:none; }
        </style>
        """,
        unsafe_allow_html=True,
    )


SEV_COLOR = {
    "critical": "#ff1a3a",
    "high": "#ff7200",
    "medium": "#ffc800",
    "low": "#00d4ff",
    "info": "#4488ff",
}

HEALTH_BADGE = {
    "live": ("#00ff88", "LIVE"),
    "degraded": ("#ffc800", "DEGRADED"),
    "error": ("#ff4444", "ERR"),
    "connecting": ("#4488ff", "..."),
}


# ----------------------------
# State
# ----------------------------
@st.cache_resource
def get_feed_state() -> ShellFeed:
    # one instance per server process, shared by every session
    state = ShellFeed()
    state.listen_for_approvals()
    return state


def current_alert(feed):
    """Critical alert stays visible for ALERT_DISPLAY_SECONDS after it first shows up."""
    ev = feed.critical_alert
    if ev is None:
        return None
    seen = st.session_state.setdefault("alert_seen", {})
    first = seen.setdefault(ev.id, time.time())
    if time.time() - first > ALERT_DISPLAY_SECONDS:
        return None
    return ev


# ----------------------------
# Map
# ----------------------------
def severity_map(df_map: pd.DataFrame):
    if df_map.empty:
        st.caption("No geo-coded events for these filters.")
        return

    traces = []
    for sev in SEVERITIES:
        sub = df_map[df_map["severity"] == sev]
        if sub.empty:
            continue
        size = np.where(
            sub["category"] == "earthquake",
            np.maximum(6, sub["magnitude"].fillna(5).astype(float) * 2.2),
            {"critical": 14, "high": 10}.get(sev, 8),
        )
        traces.append(
            go.Scattermap(
                lat=sub["lat"],
                lon=sub["lon"],
                mode="markers",
                marker=dict(size=size, color=SEV_COLOR[sev], opacity=0.85),
                hovertext=sub["title"],
                customdata=np.stack(
                    [
                        sub["source_name"].astype(str),
                        sub["category"].astype(str),
                        sub["location"].fillna("").astype(str),
                        sub["detail"].fillna("").astype(str),
                    ],
                    axis=1,
                ),
                hovertemplate=(
                    "<b>%{hovertext}</b><br>"
                    "Source: %{customdata[0]} | %{customdata[1]}<br>"
                    "%{customdata[2]}<br>"
                    "%{customdata[3]}<br>"
                    "<extra></extra>"
                ),
                name=sev,
            )
        )

    fig = go.Figure(traces)
    fig.update_layout(
        template="plotly_dark",
        height=650,
        margin=dict(l=0, r=0, t=0, b=0),
        map=dict(style="carto-darkmatter", zoom=1.08, center=dict(lat=18, lon=0)),
        legend=dict(
            yanchor="top", y=0.98, xanchor="right", x=0.99,
            bgcolor="rgba(0,0,0,0.35)", font=dict(size=12),
        ),
    )
    st.plotly_chart(fig, use_container_width=True)


def apply_heat_styles(df: pd.DataFrame):
    d = df.copy()
    d["rank"] = d["severity"].map(SEVERITY_RANK).fillna(0)
    sty = d.style.background_gradient(subset=["rank"], cmap="Reds")
    return sty.hide(axis="columns", subset=["rank"])


# ----------------------------
# App
# ----------------------------
st.set_page_config(page_title="Hazard Monitor", layout="wide")
apply_theme()

state = get_feed_state()

with st.sidebar:
    st.header("Filters")
    category = st.selectbox("Category", ["all"] + list(CATEGORIES), index=0)
    search = st.text_input("Search title / location", "")
    show_map = st.checkbox("Show Map", value=True)
    force = st.button("Refresh now")

feed = state.refresh(force=force)

alert = current_alert(feed)
if alert:
    st.markdown(f'<div class="alert-banner">BREAKING: {alert.title}</div>', unsafe_allow_html=True)

st.title("Hazard Monitor")

badges = []
for sid, status in feed.health.items():
    color, label = HEALTH_BADGE.get(status, ("#777", "?"))
    badges.append(f'<span class="badge" style="color:{color}">{sid.upper()} {label}</span>')
st.markdown(" ".join(badges), unsafe_allow_html=True)

m1, m2, m3 = st.columns(3)
m1.metric("Events", feed.counts.total)
m2.metric("Critical", feed.counts.critical)
m3.metric("Conflicts", feed.counts.conflict)

shown = filter_events(feed.ordered, category, search)
st.caption(f"{len(shown)} events shown")

if show_map:
    st.subheader("Map")
    severity_map(to_frame(with_coordinates(shown)))
    st.divider()

left, right = st.columns([2, 1])

with left:
    st.subheader("Feed")
    if not shown:
        st.caption("No events match your filters.")
    for e in shown[:60]:
        link = f"[{e.title}]({e.external_url})" if e.external_url else e.title
        st.markdown(
            f"**{link}**  \n"
            f"{e.source_name} · {e.category} · **{e.severity}** · {e.location or 'Unknown'}"
        )
        if e.detail:
            st.caption(e.detail[:350])
        st.divider()

with right:
    st.subheader("Submit a report")
    with st.form("submit_report", clear_on_submit=True):
        title = st.text_input("Title")
        body = st.text_area("Details")
        location = st.text_input("Location")
        sub_cat = st.selectbox("Category", list(CATEGORIES), index=CATEGORIES.index("user_report"))
        sub_sev = st.selectbox("Severity", list(SEVERITIES), index=SEVERITIES.index("medium"))
        author = st.text_input("Your handle", "anonymous")
        if st.form_submit_button("Submit"):
            try:
                db.submit(
                    {"title": title, "body": body, "location": location,
                     "category": sub_cat, "severity": sub_sev},
                    author_id=author,
                )
                st.success("Submitted, waiting for approval.")
            except SubmissionRejected as e:
                st.error(f"Rejected: {e}")

    st.subheader("Moderation")
    for row in db.pending_submissions()[:10]:
        st.markdown(f"**{row['title']}** ({row['category']}, {row['severity']}) by {row['author_id']}")
        if st.button("Approve", key=f"approve_{row['submission_id']}"):
            # approval notifies the shared feed, the rerun drains it
            db.approve(row["submission_id"])
            st.rerun()

st.subheader("Events Table")
table_df = to_frame(shown)[["ts", "category", "severity", "source_name", "title", "location", "external_url"]]
st.write(apply_heat_styles(table_df))

st.download_button(
    "Download events CSV",
    data=table_df.to_csv(index=False).encode("utf-8"),
    file_name="hazard_events.csv",
    mime="text/csv",
)

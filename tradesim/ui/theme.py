from __future__ import annotations

import streamlit as st


def inject_global_css() -> None:
    st.markdown(
        """
<style>
:root {
  --bg: #0b0f14;
  --card-bg: #101826;
  --text: #e6edf3;
  --muted: #8b9bb3;
  --border: rgba(255, 255, 255, 0.06);
  --up: #10b981;
  --down: #ef4444;
  --primary: #6366f1;
  --chip: #1a2432;
}

.stApp {
  background: radial-gradient(circle at 5% 5%, #122036 0%, var(--bg) 45%, var(--bg) 100%);
}

[data-testid="stAppViewContainer"] .main .block-container {
  max-width: 1280px;
  padding-top: 0.6rem;
  padding-bottom: 0.8rem;
}

.app-title {
  font-size: 28px;
  font-weight: 700;
  color: var(--text);
  margin: 0 0 4px 2px;
  letter-spacing: 0.01em;
}

.card {
  border-radius: 16px;
  background: linear-gradient(180deg, rgba(22, 32, 48, 0.96) 0%, rgba(15, 24, 38, 0.96) 100%);
  border: 1px solid var(--border);
  box-shadow: 0 8px 24px rgba(0, 0, 0, 0.28);
  padding: 12px 14px;
  margin-bottom: 10px;
}

.section-title {
  font-size: 1.15rem;
  font-weight: 800;
  color: var(--text);
  line-height: 1.15;
}

.summary-title {
  font-size: 0.8rem;
  color: var(--muted);
  text-transform: uppercase;
  letter-spacing: 0.04em;
}

.summary-value {
  font-size: 1.55rem;
  font-weight: 800;
  color: var(--text);
  white-space: nowrap;
}

.ticker-strip {
  display: flex;
  gap: 18px;
  overflow-x: auto;
  white-space: nowrap;
  padding: 6px 2px 10px;
  border-bottom: 1px solid var(--border);
  margin-bottom: 12px;
}

.ticker-item {
  font-size: 0.82rem;
  color: var(--text);
}

.tone-up {
  color: var(--up);
}

.tone-down {
  color: var(--down);
}

.tone-flat {
  color: var(--muted);
}

.muted {
  color: var(--muted);
}

.tiny {
  font-size: 0.74rem;
  line-height: 1.15;
}

.avatar {
  width: 28px;
  height: 28px;
  border-radius: 999px;
  vertical-align: middle;
  margin-right: 6px;
}
</style>
""",
        unsafe_allow_html=True,
    )

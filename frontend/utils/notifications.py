import streamlit as st


class StreamlitNotifier:
    """Shows success and failure messages on the current page."""

    def success(self, title: str, message: str) -> None:
        st.toast(f"**{title}**: {message}", icon="✅")

    def failure(self, title: str, message: str) -> None:
        st.error(f"**{title}**: {message}")

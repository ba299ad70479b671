"""Tests for Application."""

import pytest

from weai.app import Application


class TestApplication:
    """Tests for Application lifecycle."""

    @pytest.mark.asyncio
    async def test_start_initializes_components(self, mock_llm):
        app = Application(db_path=":memory:", llm_provider=mock_llm)
        await app.start()

        try:
            assert app._storage is not None
            assert app._tracker is not None
            assert app._sessions is not None
            assert app._sessions._llm is mock_llm
            assert app._tracker._storage is app._storage
            assert app.llm_enabled
        finally:
            await app.stop()

    @pytest.mark.asyncio
    async def test_start_without_api_key_disables_llm(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

        app = Application(db_path=":memory:")
        await app.start()

        try:
            assert not app.llm_enabled
            response = await app.sessions.handle_message(1, "hi")
            assert response
        finally:
            await app.stop()

    @pytest.mark.asyncio
    async def test_properties_before_start(self):
        app = Application(db_path=":memory:")

        with pytest.raises(RuntimeError, match="not started"):
            app.storage
        with pytest.raises(RuntimeError, match="not started"):
            app.sessions

    @pytest.mark.asyncio
    async def test_reset_clears_data_and_sessions(self, mock_llm):
        from weai.models import Identity

        app = Application(db_path=":memory:", llm_provider=mock_llm)
        await app.start()

        try:
            await app.storage.save_user(Identity(telegram_id=1, first_name="Anna"))
            await app.sessions.handle_message(1, "hi")

            await app.reset()

            assert await app.storage.list_users() == []
            assert app.sessions.get_state(1) is None
            assert await app.sessions.handle_message(1, "hi")
        finally:
            await app.stop()

    @pytest.mark.asyncio
    async def test_history_window_from_env(self, monkeypatch, mock_llm):
        monkeypatch.setenv("HISTORY_WINDOW", "6")
        app = Application(db_path=":memory:", llm_provider=mock_llm)
        assert app._history_window == 6

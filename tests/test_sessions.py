import threading
import time

from pizzabot.sessions import InMemorySessionStore, ThreadDirectory
from pizzabot.state import Session, State


class TestInMemorySessionStore:
    """Testa o armazenamento de sessões em memória"""

    def test_get_or_create_creates_once(self, store):
        """Testa que a sessão é criada no primeiro contato e reutilizada depois"""
        first = store.get_or_create("77988197145", thread_id="5577988197145")
        second = store.get_or_create("77988197145", thread_id="outro")

        assert first is second
        assert first.state == State.START
        assert first.thread_id == "5577988197145"
        assert len(store) == 1

    def test_set_replaces_session(self, store):
        """Testa que set substitui a sessão guardada"""
        store.get_or_create("77988197145")
        replacement = Session(conversation_id="77988197145", state=State.MAIN_MENU)

        store.set("77988197145", replacement)

        assert store.get("77988197145") is replacement
        assert store.get("desconhecido") is None

    def test_lock_serializes_one_conversation(self, store):
        """Testa que mensagens da mesma conversa são processadas uma de cada vez"""
        active = []
        overlaps = []

        def worker():
            with store.lock("77988197145"):
                active.append(1)
                if len(active) > 1:
                    overlaps.append(True)
                time.sleep(0.01)
                active.pop()

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert overlaps == []

    def test_lock_is_reentrant(self, store):
        """Testa que o mesmo fluxo pode adquirir o lock novamente"""
        with store.lock("77988197145"):
            with store.lock("77988197145"):
                assert True


class TestThreadDirectory:
    """Testa a resolução de telefone para conversa"""

    def test_exact_match(self, store):
        """Testa a busca direta pelo telefone sem código do país"""
        store.get_or_create("77988197145", thread_id="5577988197145")
        directory = ThreadDirectory(store)

        assert directory.resolve_thread("+55 77 98819-7145") == "5577988197145"

    def test_suffix_match(self, store):
        """Testa a busca parcial quando o backend envia o número sem DDD"""
        store.get_or_create("77988197145", thread_id="5577988197145")
        directory = ThreadDirectory(store)

        assert directory.resolve_thread("988197145") == "5577988197145"

    def test_short_numbers_do_not_match_partially(self, store):
        """Testa que números curtos não geram correspondência parcial"""
        store.get_or_create("77988197145", thread_id="5577988197145")
        directory = ThreadDirectory(store)

        assert directory.resolve_thread("7145") is None
        assert directory.resolve_thread("") is None

    def test_unknown_number(self, store):
        """Testa um número sem conversa conhecida"""
        assert ThreadDirectory(store).resolve_thread("11999998888") is None

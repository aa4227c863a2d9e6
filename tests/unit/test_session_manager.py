import threading

import pytest

from lumberjack_lib.config import Config
from lumberjack_lib.encryption import FernetEncrypter
from lumberjack_lib.services import ServiceContainer
from lumberjack_lib.session.encrypted_store import EncryptedStore
from lumberjack_lib.session.file_handler import FileSessionHandler
from lumberjack_lib.session.handler import NullSessionHandler
from lumberjack_lib.session.manager import SessionManager
from lumberjack_lib.session.memory_handler import MemorySessionHandler
from lumberjack_lib.session.store import Store


class TestSessionHandler(NullSessionHandler):
    __test__ = False


def container_with_session_config(tmp_path, driver='file', cookie='lumberjack', encrypted=False):
    container = ServiceContainer()
    config = Config({'session': {
        'driver': driver,
        'cookie': cookie,
        'encrypt': encrypted,
        'files': str(tmp_path / 'sessions'),
    }})
    container.register_singleton('config', config)
    return container


def test_default_driver_is_read_from_config(tmp_path):
    manager = SessionManager(container_with_session_config(tmp_path, driver='driver-name'))
    assert manager.get_default_driver() == 'driver-name'


def test_default_driver_falls_back_to_file():
    container = ServiceContainer()
    container.register_singleton('config', Config())
    manager = SessionManager(container)
    assert manager.get_default_driver() == 'file'


def test_can_create_a_file_driver(tmp_path):
    manager = SessionManager(container_with_session_config(tmp_path, 'file', 'lumberjack'))

    store = manager.driver()
    assert isinstance(store.get_handler(), FileSessionHandler)
    assert store.get_handler().directory == tmp_path / 'sessions'
    assert store.get_name() == 'lumberjack'


def test_cookie_name_defaults_to_lumberjack():
    container = ServiceContainer()
    container.register_singleton('config', Config({'session': {'driver': 'array'}}))
    manager = SessionManager(container)
    assert manager.driver().get_name() == 'lumberjack'


def test_can_create_an_array_driver(tmp_path):
    manager = SessionManager(container_with_session_config(tmp_path, 'array'))
    assert isinstance(manager.driver().get_handler(), MemorySessionHandler)


def test_driver_without_name_uses_configured_default(tmp_path):
    manager = SessionManager(container_with_session_config(tmp_path, 'custom'))
    manager.extend('custom', lambda: TestSessionHandler())
    assert manager.driver() is manager.driver('custom')


def test_can_extend_list_of_drivers(tmp_path):
    manager = SessionManager(container_with_session_config(tmp_path))
    created = []

    def factory():
        handler = TestSessionHandler()
        created.append(handler)
        return handler

    assert manager.extend('test', factory) is manager
    store = manager.driver('test')
    assert isinstance(store.get_handler(), TestSessionHandler)
    assert store.get_handler() is created[0]


def test_drivers_are_cached_by_name(tmp_path):
    manager = SessionManager(container_with_session_config(tmp_path))
    calls = []
    manager.extend('test', lambda: calls.append(1) or TestSessionHandler())

    assert manager.driver('test') is manager.driver('test')
    assert len(calls) == 1
    assert set(manager.get_drivers()) == {'test'}


def test_extend_replaces_a_cached_driver(tmp_path):
    manager = SessionManager(container_with_session_config(tmp_path))
    manager.extend('test', TestSessionHandler)
    first = manager.driver('test')
    manager.extend('test', MemorySessionHandler)
    second = manager.driver('test')
    assert first is not second
    assert isinstance(second.get_handler(), MemorySessionHandler)


def test_concurrent_driver_calls_build_one_instance(tmp_path):
    manager = SessionManager(container_with_session_config(tmp_path))
    calls = []
    manager.extend('test', lambda: calls.append(1) or TestSessionHandler())
    results = []

    threads = [threading.Thread(target=lambda: results.append(manager.driver('test'))) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(calls) == 1
    assert all(r is results[0] for r in results)


def test_unknown_driver_raises(tmp_path):
    manager = SessionManager(container_with_session_config(tmp_path))
    with pytest.raises(ValueError, match='not supported'):
        manager.driver('nope')


def test_can_create_an_unencrypted_store(tmp_path):
    manager = SessionManager(container_with_session_config(tmp_path, encrypted=False))
    assert isinstance(manager.driver(), Store)


def test_can_create_an_encrypted_store(tmp_path):
    container = container_with_session_config(tmp_path, encrypted=True)
    encrypter = FernetEncrypter(key=FernetEncrypter.generate_key())
    container.register_singleton('encrypter', encrypter)

    manager = SessionManager(container)
    store = manager.driver()

    assert isinstance(store, EncryptedStore)
    assert store.get_encrypter() is encrypter


def test_encrypted_store_requires_an_encrypter(tmp_path):
    manager = SessionManager(container_with_session_config(tmp_path, encrypted=True))
    with pytest.raises(KeyError):
        manager.driver()


def test_stores_share_the_manager_session_id(tmp_path):
    manager = SessionManager(container_with_session_config(tmp_path), session_id='abc')
    manager.extend('other', MemorySessionHandler)
    assert manager.driver().get_id() == 'abc'
    assert manager.driver('other').get_id() == 'abc'
    assert manager.get_session_id() == 'abc'


def test_file_driver_persists_between_managers(tmp_path):
    first = SessionManager(container_with_session_config(tmp_path), session_id='abc')
    store = first.driver()
    store.start()
    store.put('count', 1)
    store.save()

    second = SessionManager(container_with_session_config(tmp_path), session_id='abc')
    again = second.driver()
    again.start()
    assert again.get('count') == 1


def test_factory_may_resolve_another_driver(tmp_path):
    manager = SessionManager(container_with_session_config(tmp_path))
    manager.extend('wrapped', lambda: manager.driver('array').get_handler())

    store = manager.driver('wrapped')
    assert isinstance(store.get_handler(), MemorySessionHandler)
    assert store.get_handler() is manager.driver('array').get_handler()

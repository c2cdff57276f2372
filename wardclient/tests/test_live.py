import json
import threading
from contextlib import contextmanager

from wardclient.live import DeviceUpdate, LiveUpdateFeed, Notification


def frame(device_id, help_needed=True, updated_at='2024-05-01T10:00:00+00:00'):
    return json.dumps({'id': device_id, 'help_needed': help_needed, 'updatedAt': updated_at})


class RecordingEvent(threading.Event):
    def __init__(self):
        super().__init__()
        self.waits = []

    def wait(self, timeout=None):
        self.waits.append(timeout)
        return self.is_set()


def test_duplicate_of_last_message_is_dropped():
    feed = LiveUpdateFeed('ws://ward.test/ws/devices/')
    assert feed.handle_message(frame('D1')) is not None
    assert feed.handle_message(frame('D1')) is None
    assert len(feed.history) == 1


def test_only_the_last_message_is_compared():
    feed = LiveUpdateFeed('ws://ward.test/ws/devices/')
    for raw in (frame('D1'), frame('D2'), frame('D1')):
        feed.handle_message(raw)
    assert [u.id for u in feed.history] == ['D1', 'D2', 'D1']


def test_history_is_bounded_and_newest_first():
    feed = LiveUpdateFeed('ws://ward.test/ws/devices/')
    for i in range(8):
        feed.handle_message(frame(f'D{i}'))
    assert [u.id for u in feed.history] == ['D7', 'D6', 'D5', 'D4', 'D3']


def test_device_filter_applies_before_dedup():
    feed = LiveUpdateFeed('ws://ward.test/ws/devices/', device_id='D1')
    feed.handle_message(frame('D1'))
    feed.handle_message(frame('D2'))
    # D2 was filtered out, so this repeat is still a duplicate of the last kept message.
    assert feed.handle_message(frame('D1')) is None
    assert [u.id for u in feed.history] == ['D1']


def test_notifications_follow_help_flag():
    notes = []
    feed = LiveUpdateFeed('ws://ward.test/ws/devices/', on_notify=notes.append)
    feed.handle_message(frame('D1', True, '2024-05-01T10:00:00+00:00'))
    feed.handle_message(frame('D1', False, '2024-05-01T10:05:00+00:00'))
    assert notes == [
        Notification('error', 'Device D1 needs help!'),
        Notification('success', 'Device D1 is OK again.'),
    ]


def test_malformed_messages_are_skipped():
    updates = []
    feed = LiveUpdateFeed('ws://ward.test/ws/devices/', on_update=updates.append)
    assert feed.handle_message('not json') is None
    assert feed.handle_message(json.dumps(['D1'])) is None
    feed.handle_message(frame('D1'))
    assert updates == [DeviceUpdate('D1', True, '2024-05-01T10:00:00+00:00')]


def test_reconnects_with_a_constant_delay():
    attempts = []
    feed = None

    @contextmanager
    def connect(url):
        attempts.append(url)
        if len(attempts) < 3:
            raise OSError('connection refused')
        yield iter([frame('D1')])
        feed.stop()

    feed = LiveUpdateFeed('ws://ward.test/ws/devices/', reconnect_delay=2.0, connect=connect)
    feed._stop = RecordingEvent()
    feed.run_forever()

    assert len(attempts) == 3
    assert feed._stop.waits == [2.0, 2.0, 2.0]
    assert [u.id for u in feed.history] == ['D1']


def test_failing_callback_does_not_stop_the_feed():
    notes = []

    def broken(update):
        raise RuntimeError('render failed')

    feed = LiveUpdateFeed('ws://ward.test/ws/devices/', on_update=broken, on_notify=notes.append)
    feed.consume([frame('D1'), frame('D2')])
    assert [u.id for u in feed.history] == ['D2', 'D1']
    assert len(notes) == 2

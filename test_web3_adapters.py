import time
import unittest
from unittest.mock import MagicMock

from web3 import Web3

from timenode.base import Block
from timenode.chain import Web3ChainClient
from timenode.contracts import REQUEST_TRACKER_ABI, REQUEST_UINT_FIELDS
from timenode.errors import RemoteFetchError, TimenodeError
from timenode.request import TransactionRequest, Web3RequestLibrary, decode_request_data
from timenode.routing import log_route
from timenode.tracker import RequestTracker
from timenode_fakes import addr

TRACKER, FACTORY, REQUEST = addr(0x7a), addr(0xfa), addr(0xbeef)


def request_data(window_start=12345, temporal_unit=1, was_called=False):
    uints = [0] * len(REQUEST_UINT_FIELDS)
    uints[REQUEST_UINT_FIELDS.index('window_start')] = window_start
    uints[REQUEST_UINT_FIELDS.index('temporal_unit')] = temporal_unit
    uints[REQUEST_UINT_FIELDS.index('window_size')] = 255
    return ([addr(i + 1) for i in range(6)], [False, was_called, False], uints, [100])


class TestWeb3ChainClient(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.w3 = MagicMock()

    async def test_get_block(self):
        self.w3.eth.get_block.return_value = {'number': 10, 'timestamp': 1000, 'hash': b'\x00'}
        client = Web3ChainClient(self.w3)

        block = await client.get_block('latest')

        self.assertEqual(block, Block(10, 1000))
        self.assertEqual(client.last_block, 10)
        self.w3.eth.get_block.assert_called_once_with('latest')

    async def test_rpc_error_raises_remote_fetch_error(self):
        self.w3.eth.get_block.side_effect = ConnectionError("refused")

        with self.assertRaises(RemoteFetchError) as ctx:
            await Web3ChainClient(self.w3).get_block(5)
        self.assertIsInstance(ctx.exception.cause, ConnectionError)

    async def test_timeout_raises_remote_fetch_error(self):
        self.w3.eth.get_block.side_effect = lambda *args: time.sleep(0.2)

        with self.assertRaises(RemoteFetchError):
            await Web3ChainClient(self.w3, timeout=0.05).get_block(5)

    def test_connect(self):
        self.w3.is_connected.return_value = True
        self.w3.eth.block_number = 42
        client = Web3ChainClient(self.w3)

        self.assertTrue(client.connect())
        self.assertEqual(client.last_block, 42)

    def test_connect_failure(self):
        self.w3.is_connected.return_value = False

        with self.assertLogs('timenode.chain', level='ERROR'):
            self.assertFalse(Web3ChainClient(self.w3).connect())


class TestRequestTracker(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.w3 = MagicMock()
        self.contract = self.w3.eth.contract.return_value
        self.tracker = RequestTracker(self.w3, TRACKER)
        self.factory = Web3.to_checksum_address(FACTORY)

    async def test_requires_factory(self):
        with self.assertRaises(TimenodeError):
            await self.tracker.next_request(REQUEST)

    async def test_window_start_for(self):
        self.tracker.set_factory(FACTORY)
        self.contract.functions.getWindowStart.return_value.call.return_value = 777

        self.assertEqual(await self.tracker.window_start_for(REQUEST), 777)
        self.contract.functions.getWindowStart.assert_called_once_with(
            self.factory, Web3.to_checksum_address(REQUEST))

    async def test_queries_use_operators(self):
        self.tracker.set_factory(FACTORY)
        self.contract.functions.query.return_value.call.return_value = REQUEST

        self.assertEqual(await self.tracker.previous_from_right(200), REQUEST)
        self.contract.functions.query.assert_called_with(self.factory, b'<=', 200)

        await self.tracker.next_from_left(100)
        self.contract.functions.query.assert_called_with(self.factory, b'>=', 100)

    async def test_neighbours(self):
        self.tracker.set_factory(FACTORY)
        self.contract.functions.getPreviousRequest.return_value.call.return_value = addr(1)
        self.contract.functions.getNextRequest.return_value.call.return_value = addr(2)

        self.assertEqual(await self.tracker.previous_request(REQUEST), addr(1))
        self.assertEqual(await self.tracker.next_request(REQUEST), addr(2))

    def test_abi_covers_scanner_calls(self):
        names = sorted(entry['name'] for entry in REQUEST_TRACKER_ABI)

        self.assertEqual(names, ['getNextRequest', 'getPreviousRequest', 'getWindowStart', 'query'])
        self.assertFalse(hasattr(self.tracker, 'is_known_request'))

    async def test_call_failure(self):
        self.tracker.set_factory(FACTORY)
        self.contract.functions.getNextRequest.return_value.call.side_effect = ValueError("execution reverted")

        with self.assertRaises(RemoteFetchError):
            await self.tracker.next_request(REQUEST)


class TestTransactionRequest(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.w3 = MagicMock()
        self.call = self.w3.eth.contract.return_value.functions.requestData.return_value.call
        self.call.return_value = request_data()

    def test_decode(self):
        data = decode_request_data(request_data(window_start=99, was_called=True))

        self.assertEqual(data['window_start'], 99)
        self.assertEqual(data['window_size'], 255)
        self.assertTrue(data['was_called'])
        self.assertEqual(data['payment_modifier'], 100)
        self.assertEqual(data['to_address'], addr(6))

    async def test_fill_loads_once(self):
        request = await Web3RequestLibrary(self.w3).transaction_request(REQUEST)
        self.assertIsNone(request.window_start)

        await request.fill_data()
        await request.fill_data()

        self.assertEqual(request.window_start, 12345)
        self.assertTrue(request.is_block_scheduled)
        self.assertFalse(request.is_timestamp_scheduled)
        self.assertEqual(self.call.call_count, 1)

    async def test_refresh_reloads(self):
        request = TransactionRequest(self.w3, REQUEST)
        await request.fill_data()
        self.call.return_value = request_data(was_called=True)

        await request.refresh_data()

        self.assertTrue(request.was_called)
        self.assertEqual(self.call.call_count, 2)

    async def test_refresh_failure(self):
        self.call.side_effect = ConnectionError("reset")

        with self.assertRaises(RemoteFetchError):
            await TransactionRequest(self.w3, REQUEST).refresh_data()


class TestLogRoute(unittest.IsolatedAsyncioTestCase):

    async def test_logs_request_state(self):
        w3 = MagicMock()
        w3.eth.contract.return_value.functions.requestData.return_value.call.return_value = \
            request_data(was_called=True)
        request = TransactionRequest(w3, REQUEST)
        await request.fill_data()

        with self.assertLogs('timenode.routing', level='INFO') as logs:
            log_route(None, request)

        self.assertIn('executed', logs.output[0])
        self.assertIn('12345', logs.output[0])


if __name__ == '__main__':
    unittest.main()

"""
Minimal ABIs for the contracts the keeper reads from
"""

REQUEST_TRACKER_ABI = [
    {"constant": True, "inputs": [
        {"name": "factory", "type": "address"},
        {"name": "request", "type": "address"}
    ], "name": "getWindowStart", "outputs": [{"name": "", "type": "uint256"}], "type": "function"},
    {"constant": True, "inputs": [
        {"name": "factory", "type": "address"},
        {"name": "request", "type": "address"}
    ], "name": "getPreviousRequest", "outputs": [{"name": "", "type": "address"}], "type": "function"},
    {"constant": True, "inputs": [
        {"name": "factory", "type": "address"},
        {"name": "request", "type": "address"}
    ], "name": "getNextRequest", "outputs": [{"name": "", "type": "address"}], "type": "function"},
    {"constant": True, "inputs": [
        {"name": "factory", "type": "address"},
        {"name": "operator", "type": "bytes2"},
        {"name": "value", "type": "uint256"}
    ], "name": "query", "outputs": [{"name": "", "type": "address"}], "type": "function"},
]

TRANSACTION_REQUEST_ABI = [
    {"constant": True, "inputs": [], "name": "requestData", "outputs": [
        {"name": "", "type": "address[6]"},
        {"name": "", "type": "bool[3]"},
        {"name": "", "type": "uint256[15]"},
        {"name": "", "type": "uint8[1]"}
    ], "type": "function"},
]

# Field order of requestData() as serialized by the request library contract
REQUEST_ADDRESS_FIELDS = (
    'claimed_by',
    'created_by',
    'owner',
    'fee_recipient',
    'bounty_benefactor',
    'to_address',
)

REQUEST_BOOL_FIELDS = (
    'is_cancelled',
    'was_called',
    'was_successful',
)

REQUEST_UINT_FIELDS = (
    'claim_deposit',
    'fee',
    'fee_owed',
    'bounty',
    'bounty_owed',
    'claim_window_size',
    'freeze_period',
    'reserved_window_size',
    'temporal_unit',
    'window_size',
    'window_start',
    'call_gas',
    'call_value',
    'gas_price',
    'required_deposit',
)

REQUEST_UINT8_FIELDS = (
    'payment_modifier',
)

TEMPORAL_UNIT_BLOCKS = 1
TEMPORAL_UNIT_TIMESTAMP = 2

# Tracker query operators
OPERATOR_AT_OR_BEFORE = b'<='
OPERATOR_AT_OR_AFTER = b'>='

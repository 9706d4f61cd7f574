from eth_utils import event_signature_to_log_topic, to_checksum_address
from hexbytes import HexBytes
from web3.datastructures import AttributeDict

from curve_issuer.issuance.logs import TOKEN_CREATED_TOPIC, extract_created_address

FACTORY = to_checksum_address("0xc5a076cad94176c2996b32d8466be1ce757faa27")
TOKEN = to_checksum_address("0xaa70bc79fd1cb4a6fba717018351f0c3c64b79df")
RESERVE = "0x299c30DD5974BF4D5bFE42C340CA40462816AB07"
TRANSFER = event_signature_to_log_topic("Transfer(address,address,uint256)")


def _pad(address: str) -> bytes:
    return bytes(12) + bytes.fromhex(address[2:])


def _log(address=FACTORY, topics=None):
    return {
        "address": address,
        "topics": topics
        if topics is not None
        else [TOKEN_CREATED_TOPIC, _pad(TOKEN), _pad(RESERVE)],
        "data": "0x",
    }


class TestExtractCreatedAddress:
    def test_topic_is_event_signature_hash(self):
        assert TOKEN_CREATED_TOPIC == event_signature_to_log_topic(
            "TokenCreated(address,string,string,address)"
        )

    def test_extracts_checksummed_address(self):
        assert extract_created_address([_log()], FACTORY) == TOKEN

    def test_factory_address_is_case_insensitive(self):
        assert extract_created_address([_log(address=FACTORY.lower())], FACTORY) == TOKEN

    def test_skips_unrelated_logs(self):
        logs = [
            _log(topics=[TRANSFER, _pad(RESERVE), _pad(FACTORY)]),
            _log(address=RESERVE),
            _log(),
        ]
        assert extract_created_address(logs, FACTORY) == TOKEN

    def test_hex_string_topics(self):
        topics = ["0x" + TOKEN_CREATED_TOPIC.hex(), "0x" + _pad(TOKEN).hex()]
        assert extract_created_address([_log(topics=topics)], FACTORY) == TOKEN

    def test_web3_receipt_logs(self):
        log = AttributeDict(
            {
                "address": FACTORY,
                "topics": [HexBytes(TOKEN_CREATED_TOPIC), HexBytes(_pad(TOKEN))],
                "data": HexBytes(b""),
            }
        )
        assert extract_created_address([log], FACTORY) == TOKEN

    def test_no_logs(self):
        assert extract_created_address([], FACTORY) is None

    def test_malformed_token_topic(self):
        topics = [TOKEN_CREATED_TOPIC, b"\x01\x02"]
        assert extract_created_address([_log(topics=topics)], FACTORY) is None

    def test_missing_token_topic(self):
        assert extract_created_address([_log(topics=[TOKEN_CREATED_TOPIC])], FACTORY) is None

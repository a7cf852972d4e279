from flashswap.services.address import (
    checksum,
    first_account,
    is_address_valid,
    is_evm_network,
    normalize_network,
    short_address,
)


CHECKSUMMED = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"


def test_normalize_network_defaults_to_eth():
    assert normalize_network(None) == "ETH"
    assert normalize_network(" Ethereum ") == "ETH"


def test_normalize_network_aliases():
    assert normalize_network("bnb") == "BSC"
    assert normalize_network("matic") == "POLYGON"
    assert normalize_network("trx") == "TRX"


def test_evm_network_flags():
    assert is_evm_network("eth") is True
    assert is_evm_network("BSC") is True
    assert is_evm_network("BTC") is False


def test_address_validation_evm():
    assert is_address_valid(CHECKSUMMED) is True
    assert is_address_valid(CHECKSUMMED.lower()) is True
    assert is_address_valid(CHECKSUMMED[:-1]) is False


def test_bad_checksum_is_rejected():
    broken = CHECKSUMMED[:4] + CHECKSUMMED[4].swapcase() + CHECKSUMMED[5:]
    assert broken != CHECKSUMMED
    assert is_address_valid(broken) is False


def test_address_validation_non_evm_network():
    assert is_address_valid(CHECKSUMMED, "BTC") is False
    assert is_address_valid("", "ETH") is False


def test_checksum_roundtrip():
    assert checksum(CHECKSUMMED.lower()) == CHECKSUMMED


def test_first_account():
    assert first_account(["0xabc", "0xdef"]) == "0xabc"
    assert first_account([]) is None
    assert first_account(None) is None


def test_short_address():
    assert short_address(CHECKSUMMED) == "0x5aA...BeAed"
    assert short_address(None) is None
    assert short_address("0x1234") == "0x1234"

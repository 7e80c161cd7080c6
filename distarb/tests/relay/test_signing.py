from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import keccak

from distarb.relay.signing import SIGNATURE_HEADER, FlashbotsSigner

KEY = "0x" + "4" * 64


def test_signature_recovers_to_signer():
    signer = FlashbotsSigner(KEY)
    body = '{"jsonrpc":"2.0","id":1,"method":"eth_sendBundle","params":[]}'
    header = signer.headers(body)[SIGNATURE_HEADER]
    address, signature = header.split(":")
    assert address == Account.from_key(KEY).address
    message = encode_defunct(text="0x" + keccak(text=body).hex())
    assert Account.recover_message(message, signature=signature) == address


def test_random_signer_is_stable_per_instance():
    signer = FlashbotsSigner()
    assert signer.address == signer.address
    assert FlashbotsSigner().address != signer.address

"""
Benchmarked Host Operations

Every host primitive whose cost must be charged before it runs. The
string value is the operation identifier used in cost model tables.
"""

from enum import Enum


class CostType(str, Enum):
    """Operation identifiers for calibrated host primitives."""
    WASM_INSN_EXEC = "WasmInsnExec"
    WASM_MEM_ALLOC = "WasmMemAlloc"
    HOST_MEM_ALLOC = "HostMemAlloc"
    HOST_MEM_CPY = "HostMemCpy"
    HOST_MEM_CMP = "HostMemCmp"
    INVOKE_HOST_FUNCTION = "InvokeHostFunction"
    INVOKE_CONTRACT = "InvokeContract"
    VISIT_OBJECT = "VisitObject"
    VAL_SER = "ValSer"
    VAL_DESER = "ValDeser"
    COMPUTE_SHA256_HASH = "ComputeSha256Hash"
    COMPUTE_KECCAK256_HASH = "ComputeKeccak256Hash"
    COMPUTE_ED25519_PUBKEY = "ComputeEd25519PubKey"
    VERIFY_ED25519_SIG = "VerifyEd25519Sig"
    COMPUTE_ECDSA_SECP256K1_SIG = "ComputeEcdsaSecp256k1Sig"
    RECOVER_ECDSA_SECP256K1_KEY = "RecoverEcdsaSecp256k1Key"
    PRNG_DRAW = "PrngDraw"
    NUM_OP = "NumOp"
    VM_INSTANTIATION = "VmInstantiation"

    def __str__(self) -> str:
        return self.value


def operation_id(operation) -> str:
    """Normalize a CostType or plain string to its table identifier."""
    if isinstance(operation, CostType):
        return operation.value
    if not isinstance(operation, str) or not operation:
        raise ValueError(f"Invalid operation identifier: {operation!r}")
    return operation

"""Event signature catalogs for the escrow and orchestrator contracts."""

from __future__ import annotations

ESCROW_EVENTS = [
    "IntentSignaled(bytes32 indexed intentHash, uint256 indexed depositId,"
    " address indexed verifier, address owner, address to, uint256 amount,"
    " bytes32 fiatCurrency, uint256 conversionRate, uint256 timestamp)",
    "IntentFulfilled(bytes32 indexed intentHash, uint256 indexed depositId,"
    " address indexed verifier, address owner, address to, uint256 amount,"
    " uint256 sustainabilityFee, uint256 verifierFee)",
    "IntentPruned(bytes32 indexed intentHash, uint256 indexed depositId)",
    "DepositReceived(uint256 indexed depositId, address indexed depositor,"
    " address indexed token, uint256 amount, tuple(uint256,uint256) intentAmountRange)",
    "DepositCurrencyAdded(uint256 indexed depositId, address indexed verifier,"
    " bytes32 indexed currency, uint256 conversionRate)",
    "DepositVerifierAdded(uint256 indexed depositId, address indexed verifier,"
    " bytes32 indexed payeeDetailsHash, address intentGatingService)",
    "DepositWithdrawn(uint256 indexed depositId, address indexed depositor, uint256 amount)",
    "DepositClosed(uint256 depositId, address depositor)",
    "DepositCurrencyRateUpdated(uint256 indexed depositId, address indexed verifier,"
    " bytes32 indexed currency, uint256 conversionRate)",
    "DepositConversionRateUpdated(uint256 indexed depositId, address indexed verifier,"
    " bytes32 indexed currency, uint256 newConversionRate)",
    "BeforeExecution()",
    "UserOperationEvent(bytes32 indexed userOpHash, address indexed sender,"
    " address indexed paymaster, uint256 nonce, bool success,"
    " uint256 actualGasCost, uint256 actualGasUsed)",
]

ORCHESTRATOR_EVENTS = [
    "IntentSignaled(bytes32 indexed intentHash, address indexed escrow,"
    " uint256 indexed depositId, bytes32 paymentMethod, address owner, address to,"
    " uint256 amount, bytes32 fiatCurrency, uint256 conversionRate, uint256 timestamp)",
    "IntentFulfilled(bytes32 indexed intentHash, address indexed fundsTransferredTo,"
    " uint256 amount, bool isManualRelease)",
    "IntentPruned(bytes32 indexed intentHash)",
]

CATALOGS = {
    "escrow": ESCROW_EVENTS,
    "orchestrator": ORCHESTRATOR_EVENTS,
}

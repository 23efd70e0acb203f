"""Reference data for on-chain identifiers: fiat currency hashes and payment platforms."""

from __future__ import annotations

from dataclasses import dataclass

# keccak256(ISO code) -> ISO code
CURRENCY_CODES: dict[str, str] = {
    "0x4dab77a640748de8588de6834d814a344372b205265984b969f3e97060955bfa": "AED",
    "0x8fd50654b7dd2dc839f7cab32800ba0c6f7f66e1ccf89b21c09405469c2175ec": "ARS",
    "0xcb83cbb58eaa5007af6cad99939e4581c1e1b50d65609c30f303983301524ef3": "AUD",
    "0x221012e06ebf59a20b82e3003cf5d6ee973d9008bdb6e2f604faa89a27235522": "CAD",
    "0xc9d84274fd58aa177cabff54611546051b74ad658b939babaad6282500300d36": "CHF",
    "0xfaaa9c7b2f09d6a1b0971574d43ca62c3e40723167c09830ec33f06cec921381": "CNY",
    "0xd783b199124f01e5d0dde2b7fc01b925e699caea84eae3ca92ed17377f498e97": "CZK",
    "0x5ce3aa5f4510edaea40373cbe83c091980b5c92179243fe926cb280ff07d403e": "DKK",
    "0xfff16d60be267153303bbfa66e593fb8d06e24ea5ef24b6acca5224c2ca6b907": "EUR",
    "0x90832e2dc3221e4d56977c1aa8f6a6706b9ad6542fbbdaac13097d0fa5e42e67": "GBP",
    "0xa156dad863111eeb529c4b3a2a30ad40e6dcff3b27d8f282f82996e58eee7e7d": "HKD",
    "0x7766ee347dd7c4a6d5a55342d89e8848774567bcf7a5f59c3e82025dbde3babb": "HUF",
    "0xc681c4652bae8bd4b59bec1cdb90f868d93cc9896af9862b196843f54bf254b3": "IDR",
    "0x313eda7ae1b79890307d32a78ed869290aeb24cc0e8605157d7e7f5a69fea425": "ILS",
    "0xaad766fbc07fb357bed9fd8b03b935f2f71fe29fc48f08274bc2a01d7f642afc": "INR",
    "0xfe13aafd831cb225dfce3f6431b34b5b17426b6bff4fccabe4bbe0fe4adc0452": "JPY",
    "0x589be49821419c9c2fbb26087748bf3420a5c13b45349828f5cac24c58bbaa7b": "KES",
    "0xa94b0702860cb929d0ee0c60504dd565775a058bf1d2a2df074c1db0a66ad582": "MXN",
    "0xf20379023279e1d79243d2c491be8632c07cfb116be9d8194013fb4739461b84": "MYR",
    "0x8fb505ed75d9d38475c70bac2c3ea62d45335173a71b2e4936bd9f05bf0ddfea": "NOK",
    "0xdbd9d34f382e9f6ae078447a655e0816927c7c3edec70bd107de1d34cb15172e": "NZD",
    "0xe6c11ead4ee5ff5174861adb55f3e8fb2841cca69bf2612a222d3e8317b6ae06": "PHP",
    "0x9a788fb083188ba1dfb938605bc4ce3579d2e085989490aca8f73b23214b7c1d": "PLN",
    "0x2dd272ddce846149d92496b4c3e677504aec8d5e6aab5908b25c9fe0a797e25f": "RON",
    "0xf998cbeba8b7a7e91d4c469e5fb370cdfa16bd50aea760435dc346008d78ed1f": "SAR",
    "0x8895743a31faedaa74150e89d06d281990a1909688b82906f0eb858b37f82190": "SEK",
    "0xc241cc1f9752d2d53d1ab67189223a3f330e48b75f73ebf86f50b2c78fe8df88": "SGD",
    "0x326a6608c2a353275bd8d64db53a9d772c1d9a5bc8bfd19dfc8242274d1e9dd4": "THB",
    "0x128d6c262d1afe2351c6e93ceea68e00992708cfcbc0688408b9a23c0c543db2": "TRY",
    "0xc4ae21aac0c6549d71dd96035b7e0bdb6c79ebdba8891b666115bc976d16a29e": "USD",
    "0xe85548baf0a6732cfcc7fc016ce4fd35ce0a1877057cfec6e166af4f106a3728": "VND",
    "0x53611f0b3535a2cfc4b8deb57fa961ca36c7b2c272dfe4cb239a29c48e549361": "ZAR",
}


@dataclass(frozen=True)
class Platform:
    name: str
    usd_only: bool


# Verifier addresses (escrow) and payment method hashes (orchestrator)
PLATFORMS: dict[str, Platform] = {
    "0x76d33a33068d86016b806df02376ddbb23dd3703": Platform("cashapp", True),
    "0x9a733b55a875d0db4915c6b36350b24f8ab99df5": Platform("venmo", True),
    "0xaa5a1b62b01781e789c900d616300717cd9a41ab": Platform("revolut", False),
    "0xff0149799631d7a5bde2e7ea9b306c42b3d9a9ca": Platform("wise", False),
    "0x03d17e9371c858072e171276979f6b44571c5dea": Platform("paypal", False),
    "0x0de46433bd251027f73ed8f28e01ef05da36a2e0": Platform("monzo", False),
    "0xf2ac5be14f32cbe6a613cff8931d95460d6c33a3": Platform("mercado pago", False),
    "0x431a078a5029146aab239c768a615cd484519af7": Platform("zelle", True),
    "0x90262a3db0edd0be2369c6b28f9e8511ec0bac7136cefbada0880602f87e7268": Platform("venmo", True),
    "0x617f88ab82b5c1b014c539f7e75121427f0bb50a4c58b187a238531e7d58605d": Platform("revolut", False),
    "0x10940ee67cfb3c6c064569ec92c0ee934cd7afa18dd2ca2d6a2254fcb009c17d": Platform("cashapp", True),
    "0x554a007c2217df766b977723b276671aee5ebb4adaea0edb6433c88b3e61dac5": Platform("wise", False),
    "0xa5418819c024239299ea32e09defae8ec412c03e58f5c75f1b2fe84c857f5483": Platform("mercado pago", False),
    "0x817260692b75e93c7fbc51c71637d4075a975e221e1ebc1abeddfabd731fd90d": Platform("zelle", True),
    "0x6aa1d1401e79ad0549dced8b1b96fb72c41cd02b32a7d9ea1fed54ba9e17152e": Platform("zelle", True),
    "0x4bc42b322a3ad413b91b2fde30549ca70d6ee900eded1681de91aaf32ffd7ab5": Platform("zelle", True),
    "0x3ccc3d4d5e769b1f82dc4988485551dc0cd3c7a3926d7d8a4dde91507199490f": Platform("paypal", False),
    "0x62c7ed738ad3e7618111348af32691b5767777fbaf46a2d8943237625552645c": Platform("monzo", False),
}


def currency_code(currency_hash: str) -> str | None:
    """ISO code for a bytes32 currency hash, None when unknown."""
    return CURRENCY_CODES.get(currency_hash.lower())


def platform_name(identifier: str) -> str:
    """Display name for a verifier address or payment method hash.

    Zelle bank variants collapse to ``zelle``. Unknown identifiers render
    truncated, e.g. ``unknown (0x1234...abcd)``.
    """
    ident = identifier.lower()
    platform = PLATFORMS.get(ident)
    if platform is not None:
        return "zelle" if platform.name.startswith("zelle") else platform.name
    if len(ident) == 42:
        return f"unknown ({ident[:6]}...{ident[-4:]})"
    return f"unknown ({ident[:8]}...{ident[-6:]})"


def supported_currencies() -> list[str]:
    return sorted(CURRENCY_CODES.values())

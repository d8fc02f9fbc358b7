"""Test para o módulo principal do tinycid."""

import pytest


def test_import_tinycid():
    """Testa se o módulo tinycid pode ser importado."""
    import tinycid

    assert tinycid is not None
    assert hasattr(tinycid, "__version__")
    assert tinycid.__version__ == "0.1.0"


def test_tinycid_attributes():
    """Testa os atributos principais do módulo."""
    import tinycid

    assert hasattr(tinycid, "__author__")
    assert hasattr(tinycid, "__description__")
    assert tinycid.__description__ == "A tiny Contact-ID alarm transmitter"


@pytest.mark.unit
def test_public_api_exports():
    """A API pública expõe encoder e orquestrador."""
    import tinycid

    for name in ("encode", "EventCategory", "TransmissionOrchestrator", "SendRequest", "TxState"):
        assert name in tinycid.__all__
        assert hasattr(tinycid, name)


@pytest.mark.unit
def test_encode_from_package_root():
    """encode acessível pela raiz do pacote."""
    from tinycid import EventCategory, encode

    assert encode("1234", EventCategory.MEDICAL, "5").symbols == "123418110001005D"

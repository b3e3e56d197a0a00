from extrato.models import ImporterInfo
from extrato.registry import ImporterRegistry


def _dummy_parse(content, institution, account_type):
    return []


def test_register_and_get_for_file():
    reg = ImporterRegistry()
    info = ImporterInfo(key="csv", name="CSV", file_extensions=[".csv"], parse=_dummy_parse)
    reg.register(info)
    assert reg.get_for_file("extrato.csv") is info
    assert reg.get_for_file("EXTRATO.CSV") is info


def test_get_for_unknown_extension_returns_none():
    reg = ImporterRegistry()
    assert reg.get_for_file("extrato.pdf") is None
    assert reg.get_for_file("sem_extensao") is None


def test_register_multiple_extensions():
    reg = ImporterRegistry()
    info = ImporterInfo(key="ofx", name="OFX", file_extensions=[".ofx", ".xml"], parse=_dummy_parse)
    reg.register(info)
    assert reg.get_for_file("a.ofx") is info
    assert reg.get_for_file("b.XML") is info


def test_builtin_importers_are_registered():
    from extrato.importer import registry

    assert registry.get_for_file("extrato.csv").key == "delimited"
    assert registry.get_for_file("extrato.ofx").key == "markup"
    assert registry.get_for_file("extrato.xml").key == "markup"

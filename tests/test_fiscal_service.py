"""Testes da gravação de NF-e (cabeçalho + itens)."""

from datetime import datetime

import pytest
from sqlalchemy import event
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from models.models import NotaFiscal, ItemNota, TipoOperacao
from services.fiscal_service import (
    ImportStatus, import_nfe_xml, list_notas, get_nota, delete_nota, fiscal_stats,
)
from services.xml_service import parse_nfe_xml

CHAVE_EXEMPLO = "35250812345678000199550010000012341123456789"
OUTRA_CHAVE = "31250898765432000155550010000099991987654321"


@pytest.fixture
def header_inserts():
    """Records every INSERT into notas_fiscais."""
    calls = []

    def _record(mapper, connection, target):
        calls.append(target.chave_acesso)

    event.listen(NotaFiscal, "after_insert", _record)
    yield calls
    event.remove(NotaFiscal, "after_insert", _record)


class TestImport:

    def test_example_end_to_end(self, db_session, nfe_xml):
        result = import_nfe_xml(db_session, nfe_xml)
        assert result.ok
        assert result.status == ImportStatus.importada
        assert db_session.query(NotaFiscal).count() == 1
        assert db_session.query(ItemNota).count() == 1
        nota = result.nota
        assert nota.chave_acesso == CHAVE_EXEMPLO
        assert nota.valor_total == 100.00
        assert nota.itens[0].numero_item == 1
        assert nota.itens[0].valor_total == 100.00
        assert nota.xml_content == nfe_xml
        assert nota.emitente_endereco["uf"] == "SP"

    def test_duplicate_rejected_before_write(self, db_session, nfe_xml, header_inserts):
        first = import_nfe_xml(db_session, nfe_xml)
        second = import_nfe_xml(db_session, nfe_xml)
        assert first.ok
        assert second.status == ImportStatus.duplicada
        assert second.mensagem == "Esta nota fiscal já foi importada"
        assert header_inserts == [CHAVE_EXEMPLO]
        assert db_session.query(ItemNota).count() == 1

    def test_invalid_xml_writes_nothing(self, db_session, make_nfe, header_inserts):
        result = import_nfe_xml(db_session, make_nfe(with_dest=False))
        assert result.status == ImportStatus.xml_invalido
        assert header_inserts == []

    def test_bytes_with_bom(self, db_session, nfe_xml):
        result = import_nfe_xml(db_session, b"\xef\xbb\xbf" + nfe_xml.encode("utf-8"))
        assert result.ok

    def test_write_failure_rolls_back_header(self, db_session, nfe_xml, monkeypatch):
        def _boom():
            raise OperationalError("INSERT INTO itens_nota", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db_session, "commit", _boom)
        result = import_nfe_xml(db_session, nfe_xml)
        monkeypatch.undo()

        assert result.status == ImportStatus.falha_gravacao
        assert db_session.query(NotaFiscal).count() == 0
        assert db_session.query(ItemNota).count() == 0

    def test_unique_index_reported_as_duplicate(self, db_session, nfe_xml, monkeypatch):
        import services.fiscal_service as fiscal_service

        assert import_nfe_xml(db_session, nfe_xml).ok
        # simulate a concurrent import that passed the existence check
        monkeypatch.setattr(fiscal_service, "chave_exists", lambda db, chave: False)
        result = import_nfe_xml(db_session, nfe_xml)
        assert result.status == ImportStatus.duplicada
        assert db_session.query(NotaFiscal).count() == 1

    def test_existence_check_failure_is_reported(self, db_session, nfe_xml, monkeypatch):
        import services.fiscal_service as fiscal_service

        def _boom(db, chave):
            raise OperationalError("SELECT notas_fiscais.id", {}, Exception("database is locked"))

        monkeypatch.setattr(fiscal_service, "chave_exists", _boom)
        result = import_nfe_xml(db_session, nfe_xml)
        assert result.status == ImportStatus.falha_gravacao
        assert db_session.query(NotaFiscal).count() == 0

    def test_emission_time_stored_as_utc(self, db_session, nfe_xml):
        """dhEmi 10:30-03:00 é gravado como 13:30 UTC."""
        nota_id = import_nfe_xml(db_session, nfe_xml).nota.id
        db_session.expire_all()
        nota = get_nota(db_session, nota_id)
        assert nota.data_emissao == datetime(2025, 8, 15, 13, 30)
        assert nota.data_saida == datetime(2025, 8, 15, 14, 0)


class TestQueries:

    def setup_method(self):
        self.entrada = None

    def _seed(self, db_session, make_nfe):
        import_nfe_xml(db_session, make_nfe())
        self.entrada = import_nfe_xml(
            db_session, make_nfe(chave=OUTRA_CHAVE, tp_nf="0",
                                 itens=(("Creatina 300g", 1, 80.0, 80.0),))).nota

    def test_list_and_search(self, db_session, make_nfe):
        self._seed(db_session, make_nfe)
        assert len(list_notas(db_session)) == 2
        assert len(list_notas(db_session, search="distribuidora")) == 2
        assert [n.chave_acesso for n in list_notas(db_session, search="9876543")] == [OUTRA_CHAVE]
        assert [n.id for n in list_notas(db_session, tipo=TipoOperacao.entrada)] == [self.entrada.id]
        assert list_notas(db_session, search="inexistente") == []

    def test_stats(self, db_session, make_nfe):
        self._seed(db_session, make_nfe)
        stats = fiscal_stats(db_session)
        assert stats["total_notas"] == 2
        assert stats["valor_total"] == pytest.approx(180.0)
        assert stats["entradas"] == 1
        assert stats["saidas"] == 1

    def test_delete_cascades_to_items(self, db_session, make_nfe):
        self._seed(db_session, make_nfe)
        assert delete_nota(db_session, self.entrada.id) is True
        assert get_nota(db_session, self.entrada.id) is None
        assert db_session.query(ItemNota).count() == 1

    def test_delete_missing(self, db_session):
        assert delete_nota(db_session, 999) is False

    def test_delete_failure_rolls_back(self, db_session, make_nfe, monkeypatch):
        self._seed(db_session, make_nfe)

        def _boom():
            raise OperationalError("DELETE FROM notas_fiscais", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db_session, "commit", _boom)
        with pytest.raises(SQLAlchemyError):
            delete_nota(db_session, self.entrada.id)
        monkeypatch.undo()

        assert db_session.query(NotaFiscal).count() == 2
        assert db_session.query(ItemNota).count() == 2


def test_parsed_invoice_roundtrips_item_count(make_nfe):
    itens = [("A", 1, 1.0, 1.0), ("B", 2, 2.0, 4.0), ("C", 3, 3.0, 9.0)]
    assert len(parse_nfe_xml(make_nfe(itens=itens)).itens) == 3

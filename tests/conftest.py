import os

# Must be set before `db` / `main` are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["THERMAL_PRINTER_PORT"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from db import Base, get_db
from models import models  # noqa: F401
from main import app

CHAVE_EXEMPLO = "35250812345678000199550010000012341123456789"


def _item_xml(n, desc, qty, price, total):
    return f"""
      <det nItem="{n}">
        <prod>
          <cProd>P{n:03d}</cProd>
          <cEAN>7891234567895</cEAN>
          <xProd>{desc}</xProd>
          <NCM>21069030</NCM>
          <CFOP>5102</CFOP>
          <uCom>UN</uCom>
          <qCom>{qty:.4f}</qCom>
          <vUnCom>{price:.10f}</vUnCom>
          <vProd>{total:.2f}</vProd>
        </prod>
        <imposto>
          <ICMS><ICMS00><orig>0</orig><CST>00</CST><vICMS>18.00</vICMS></ICMS00></ICMS>
          <PIS><PISAliq><CST>01</CST><vPIS>1.65</vPIS></PISAliq></PIS>
          <COFINS><COFINSAliq><CST>01</CST><vCOFINS>7.60</vCOFINS></COFINSAliq></COFINS>
        </imposto>
      </det>"""


def build_nfe_xml(chave=CHAVE_EXEMPLO, itens=(("Whey 900g", 2, 50.0, 100.0),),
                  with_dest=True, cstat="100", tp_nf="1", namespace=True):
    ns = ' xmlns="http://www.portalfiscal.inf.br/nfe"' if namespace else ""
    dets = "".join(_item_xml(i, *it) for i, it in enumerate(itens, start=1))
    total = sum(it[3] for it in itens)
    dest = """
      <dest>
        <CPF>52998224725</CPF>
        <xNome>Maria da Silva</xNome>
        <enderDest>
          <xLgr>Rua das Flores</xLgr><nro>10</nro><xBairro>Centro</xBairro>
          <xMun>Governador Valadares</xMun><UF>MG</UF><CEP>35010000</CEP>
        </enderDest>
      </dest>""" if with_dest else ""
    prot = f"""
  <protNFe versao="4.00">
    <infProt>
      <nProt>135250000012345</nProt>
      <cStat>{cstat}</cStat>
      <xMotivo>Autorizado o uso da NF-e</xMotivo>
    </infProt>
  </protNFe>""" if cstat is not None else ""
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<nfeProc versao="4.00"{ns}>
  <NFe>
    <infNFe Id="NFe{chave}" versao="4.00">
      <ide>
        <natOp>Venda de mercadoria</natOp>
        <serie>1</serie>
        <nNF>1234</nNF>
        <dhEmi>2025-08-15T10:30:00-03:00</dhEmi>
        <dhSaiEnt>2025-08-15T11:00:00-03:00</dhSaiEnt>
        <tpNF>{tp_nf}</tpNF>
      </ide>
      <emit>
        <CNPJ>12345678000199</CNPJ>
        <xNome>Distribuidora Fit LTDA</xNome>
        <xFant>Fit Distribuidora</xFant>
        <IE>123456789</IE>
        <enderEmit>
          <xLgr>Av. Paulista</xLgr><nro>1000</nro><xBairro>Bela Vista</xBairro>
          <xMun>Sao Paulo</xMun><UF>SP</UF><CEP>01310100</CEP>
        </enderEmit>
      </emit>{dest}{dets}
      <total>
        <ICMSTot>
          <vICMS>18.00</vICMS>
          <vProd>{total:.2f}</vProd>
          <vFrete>0.00</vFrete>
          <vDesc>0.00</vDesc>
          <vIPI>0.00</vIPI>
          <vPIS>1.65</vPIS>
          <vCOFINS>7.60</vCOFINS>
          <vNF>{total:.2f}</vNF>
        </ICMSTot>
      </total>
    </infNFe>
  </NFe>{prot}
</nfeProc>
"""


@pytest.fixture
def nfe_xml():
    return build_nfe_xml()


@pytest.fixture
def make_nfe():
    return build_nfe_xml


@pytest.fixture
def db_session():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False},
                           poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def client(db_session):
    app.dependency_overrides[get_db] = lambda: db_session
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()

"""Tests for template item schemas."""
from shared.enums import OrigemPontuacao, TipoRespostaCustomizada
from shared.schemas import OpcaoRespostaConfig, TemplateItem


class TestOpcaoRespostaConfig:

    def test_camel_case_flags(self):
        config = OpcaoRespostaConfig.model_validate(
            {'valor': 'nao_conforme', 'fotoObrigatoria': True, 'observacaoObrigatoria': True}
        )
        assert config.foto_obrigatoria is True
        assert config.observacao_obrigatoria is True

    def test_three_state_score(self):
        unset = OpcaoRespostaConfig.model_validate({'valor': 'a'})
        null = OpcaoRespostaConfig.model_validate({'valor': 'a', 'pontuacao': None})
        number = OpcaoRespostaConfig.model_validate({'valor': 'a', 'pontuacao': -2})

        assert unset.resolver_pontuacao().origem == OrigemPontuacao.SEQUENCIAL
        assert null.resolver_pontuacao().valor == 0
        assert number.resolver_pontuacao().valor == -2
        assert null.pontuacao_numerica() is None
        assert number.pontuacao_numerica() == -2

    def test_boolean_score_is_not_a_number(self):
        config = OpcaoRespostaConfig.model_validate({'valor': 'a', 'pontuacao': True})
        assert config.pontuacao_definida is False


class TestTemplateItem:

    def test_defaults(self):
        item = TemplateItem()
        assert item.opcoes_ordenadas() == ['conforme', 'nao_conforme', 'nao_aplicavel', 'nao_avaliado']
        assert item.peso == 1
        assert item.obrigatorio is True

    def test_nulls_from_database(self):
        item = TemplateItem.model_validate({
            'opcoesRespostaConfig': None, 'opcoesResposta': None, 'peso': None, 'tipoRespostaCustomizada': 'numero'
        })
        assert item.opcoes_resposta_config == []
        assert item.peso == 1
        assert item.tipo_resposta_customizada == TipoRespostaCustomizada.NUMERO

    def test_first_matching_config_wins(self):
        item = TemplateItem.model_validate({'opcoesRespostaConfig': [
            {'valor': 'conforme', 'pontuacao': 3},
            {'valor': 'conforme', 'pontuacao': 9},
        ]})
        assert item.config_da_opcao('conforme').pontuacao == 3
        assert item.config_da_opcao('outro') is None

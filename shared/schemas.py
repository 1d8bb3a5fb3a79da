"""Pydantic schemas for validation and serialization.

Field names are snake_case; every field also accepts the camelCase key used by
the API layer (``opcoesRespostaConfig``, ``fotoObrigatoria``...), so records
coming straight from JSON validate without remapping.
"""
from typing import Optional, List, Dict, Any, Union
import bleach
from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict
from shared.enums import (
    CriticidadeItem, OrigemPontuacao, RespostaItem, RESPOSTAS_PADRAO, TipoRespostaCustomizada
)

Numero = Union[int, float]

SEM_GRUPO_ID = 'sem-grupo'
SEM_GRUPO_NOME = 'Sem Grupo'


def sanitize_html(text: str) -> str:
    """Secure HTML sanitization using bleach library."""
    if not text:
        return text
    if '<' not in text and '>' not in text and '&' not in text:
        return text
    allowed_tags = ['p', 'br', 'strong', 'em', 'u', 'ul', 'ol', 'li', 'blockquote']
    return bleach.clean(text, tags=allowed_tags, attributes={}, strip=True)


def _eh_numero(value: Any) -> bool:
    # bool is an int subclass but never a score
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ResolucaoPontuacao(BaseModel):
    """Tagged outcome of looking up an option's configured score."""
    origem: OrigemPontuacao
    valor: Optional[Numero] = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def explicita(cls, valor: Numero) -> 'ResolucaoPontuacao':
        return cls(origem=OrigemPontuacao.EXPLICITA, valor=valor)

    @classmethod
    def sequencial(cls) -> 'ResolucaoPontuacao':
        return cls(origem=OrigemPontuacao.SEQUENCIAL)


class OpcaoRespostaConfig(BaseModel):
    """Per-answer configuration of a template item.

    ``pontuacao`` is three-state: absent (sequential rule applies), present and
    null (explicitly worth zero), or a number. Non-numeric values are treated
    as absent.
    """
    valor: Optional[str] = None
    pontuacao: Optional[Numero] = None
    foto_obrigatoria: bool = Field(default=False, alias='fotoObrigatoria')
    observacao_obrigatoria: bool = Field(default=False, alias='observacaoObrigatoria')

    model_config = ConfigDict(populate_by_name=True, extra='ignore', from_attributes=True)

    @model_validator(mode='before')
    @classmethod
    def descartar_pontuacao_nao_numerica(cls, data):
        if isinstance(data, dict) and 'pontuacao' in data:
            value = data['pontuacao']
            if value is not None and not _eh_numero(value):
                data = {k: v for k, v in data.items() if k != 'pontuacao'}
        return data

    @property
    def pontuacao_definida(self) -> bool:
        return 'pontuacao' in self.model_fields_set

    def resolver_pontuacao(self) -> ResolucaoPontuacao:
        """Classify this option's score as explicit or sequential."""
        if not self.pontuacao_definida:
            return ResolucaoPontuacao.sequencial()
        if self.pontuacao is None:
            return ResolucaoPontuacao.explicita(0)
        return ResolucaoPontuacao.explicita(self.pontuacao)

    def pontuacao_numerica(self) -> Optional[Numero]:
        """Return the configured number, or None when unset or explicitly null."""
        return self.pontuacao if self.pontuacao_definida else None


class TemplateItem(BaseModel):
    """A checklist question as authored in an audit template."""
    id: Optional[str] = None
    pergunta: str = ""
    opcoes_resposta_config: List[OpcaoRespostaConfig] = Field(default_factory=list, alias='opcoesRespostaConfig')
    opcoes_resposta: Optional[List[str]] = Field(default=None, alias='opcoesResposta')
    usar_respostas_personalizadas: bool = Field(default=False, alias='usarRespostasPersonalizadas')
    tipo_resposta_customizada: Optional[TipoRespostaCustomizada] = Field(default=None, alias='tipoRespostaCustomizada')
    peso: int = 1
    obrigatorio: bool = True
    criticidade: CriticidadeItem = CriticidadeItem.MEDIA
    grupo_id: Optional[str] = Field(default=None, alias='grupoId')
    grupo_nome: Optional[str] = Field(default=None, alias='grupoNome')
    grupo_ordem: int = Field(default=0, alias='grupoOrdem')

    model_config = ConfigDict(populate_by_name=True, extra='ignore', from_attributes=True)

    @field_validator('opcoes_resposta_config', mode='before')
    @classmethod
    def config_nula_vira_lista(cls, v):
        return v or []

    @field_validator('opcoes_resposta', mode='before')
    @classmethod
    def separar_lista_simples(cls, v):
        # Legacy rows store the custom answers as a comma-separated string
        if isinstance(v, str):
            return [opcao.strip() for opcao in v.split(',') if opcao.strip()]
        return v

    @field_validator('peso', 'grupo_ordem', mode='before')
    @classmethod
    def nulo_vira_padrao(cls, v, info):
        if v is None:
            return 1 if info.field_name == 'peso' else 0
        return v

    def opcoes_ordenadas(self) -> List[str]:
        """Ordered answer set: the custom list when enabled and non-empty, else the default four."""
        if self.usar_respostas_personalizadas and self.opcoes_resposta:
            return list(self.opcoes_resposta)
        return list(RESPOSTAS_PADRAO)

    def config_da_opcao(self, valor: str) -> Optional[OpcaoRespostaConfig]:
        """First option config whose ``valor`` matches, if any."""
        return next((c for c in self.opcoes_resposta_config if c.valor == valor), None)


class AuditoriaItem(BaseModel):
    """A checklist item as answered during an audit."""
    id: Optional[str] = None
    template_item: Optional[TemplateItem] = Field(default=None, alias='templateItem')
    resposta: Optional[str] = RespostaItem.NAO_AVALIADO.value
    pontuacao: Numero = 0
    observacao: Optional[str] = None
    descricao_nao_conformidade: Optional[str] = Field(default=None, alias='descricaoNaoConformidade')
    quantidade_fotos: int = Field(default=0, ge=0, alias='quantidadeFotos')

    model_config = ConfigDict(populate_by_name=True, extra='ignore', from_attributes=True)

    @field_validator('pontuacao', mode='before')
    @classmethod
    def pontuacao_nula_vira_zero(cls, v):
        return 0 if v is None else v

    @field_validator('observacao', 'descricao_nao_conformidade')
    @classmethod
    def sanitize_text_fields(cls, v):
        if v:
            return sanitize_html(v)
        return v


class ResultadoCompressao(BaseModel):
    """Output of compressing one uploaded photo; never persisted as such."""
    buffer: bytes
    mime_type: str
    largura: int = Field(..., gt=0)
    altura: int = Field(..., gt=0)


class GrupoMetricas(BaseModel):
    grupo_id: str
    nome: str
    ordem: int = 0
    pontuacao_possivel: Numero = 0
    pontuacao_obtida: Numero = 0
    nao_conformidades: int = 0
    nao_aplicaveis: int = 0
    nao_respondidas: int = 0
    aproveitamento: float = 0.0
    total_itens: int = 0


class ResumoAuditoria(BaseModel):
    pontos_possiveis: Numero = 0
    pontos_realizados: Numero = 0
    nao_conformidades: int = 0
    nao_aplicaveis: int = 0
    nao_respondidas: int = 0
    pontuacao_percentual: float = 0.0
    grupos: List[GrupoMetricas] = Field(default_factory=list)


class FotoProcessada(BaseModel):
    """A photo ready to be handed to the storage layer."""
    buffer: bytes
    mime_type: str
    largura: int
    altura: int
    hash_value: str
    size_bytes: int
    tamanho_original: int
    nome_original: Optional[str] = None
    exif: Optional[Dict[str, Any]] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)

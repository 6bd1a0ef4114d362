"""
The eight analysis sections.

Each section is a frozen record holding its instruction text and the field
layout of its two-part answer (``identificacao`` for extracted facts,
``avaliacao`` for qualitative judgments). The JSON schema sent to the model
and the pydantic model used to validate the reply are both derived from that
single field layout, so they cannot drift apart.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, ValidationError, create_model

from analysis.models import SectionCatalogEntry, SectionResult, section_key
from services.errors import InvalidSectionError, UpstreamFailure

TEXT = "text"
LIST = "list"


@dataclass(frozen=True)
class Choice:
    """A string field restricted to a fixed set of values."""

    values: Tuple[str, ...]


def one_of(*values: str) -> Choice:
    return Choice(values=tuple(values))


FieldKind = Union[str, Choice]
FieldLayout = Tuple[Tuple[str, FieldKind], ...]


def _json_schema_for(kind: FieldKind) -> Dict[str, Any]:
    if isinstance(kind, Choice):
        return {"type": "string", "enum": list(kind.values)}
    if kind == LIST:
        return {"type": "array", "items": {"type": "string"}}
    return {"type": "string"}


def _annotation_for(kind: FieldKind) -> Any:
    if isinstance(kind, Choice):
        return Literal[kind.values]
    if kind == LIST:
        return List[str]
    return str


def _object_schema(layout: FieldLayout) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {name: _json_schema_for(kind) for name, kind in layout},
        "required": [name for name, _ in layout],
        "additionalProperties": False,
    }


def _describe_kind(kind: FieldKind) -> str:
    if isinstance(kind, Choice):
        return "um entre: " + ", ".join(kind.values)
    if kind == LIST:
        return "lista de textos"
    return "texto"


def format_aux_fields(aux_fields: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """Keep the descriptive string (or list-of-string) fields, dropping empties."""
    formatted: Dict[str, str] = {}
    for name, value in (aux_fields or {}).items():
        if name == "transcription":
            continue
        if isinstance(value, str):
            text = value.strip()
        elif isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value):
            text = "; ".join(item.strip() for item in value if item.strip())
        else:
            continue
        if text:
            formatted[str(name)] = text
    return formatted


@dataclass(frozen=True)
class SectionSpec:
    section_id: int
    title: str
    description: str
    instruction: str
    identificacao: FieldLayout
    avaliacao: FieldLayout
    uses_aux_fields: bool = False
    response_model: Type[BaseModel] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "response_model", self._build_response_model())

    @property
    def key(self) -> str:
        return section_key(self.section_id)

    @property
    def schema_name(self) -> str:
        return f"analise_secao_{self.section_id}"

    def _build_response_model(self) -> Type[BaseModel]:
        strict = ConfigDict(extra="forbid")
        identificacao = create_model(
            f"Secao{self.section_id}Identificacao",
            __config__=strict,
            **{name: (_annotation_for(kind), ...) for name, kind in self.identificacao},
        )
        avaliacao = create_model(
            f"Secao{self.section_id}Avaliacao",
            __config__=strict,
            **{name: (_annotation_for(kind), ...) for name, kind in self.avaliacao},
        )
        return create_model(
            f"Secao{self.section_id}Resposta",
            identificacao=(identificacao, ...),
            avaliacao=(avaliacao, ...),
        )

    def output_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "identificacao": _object_schema(self.identificacao),
                "avaliacao": _object_schema(self.avaliacao),
            },
            "required": ["identificacao", "avaliacao"],
            "additionalProperties": False,
        }

    def build_prompt(self, transcript: str, aux_fields: Optional[Mapping[str, Any]] = None) -> str:
        lines = [
            f"Analise o seguinte conteúdo de vídeo para a Seção {self.section_id} ({self.title}).",
            f"A transcrição é: '{transcript}'.",
        ]
        if self.uses_aux_fields:
            extras = format_aux_fields(aux_fields)
            if extras:
                lines.append("Dados complementares sobre o vídeo:")
                lines.extend(f"- {name}: {value}" for name, value in extras.items())
        lines.append(self.instruction)
        lines.append("Campos de 'identificacao':")
        lines.extend(f"- {name} ({_describe_kind(kind)})" for name, kind in self.identificacao)
        lines.append("Campos de 'avaliacao':")
        lines.extend(f"- {name} ({_describe_kind(kind)})" for name, kind in self.avaliacao)
        lines.append("Retorne um JSON com 'identificacao' e 'avaliacao'.")
        return "\n".join(lines)

    def validate(self, payload: Any) -> SectionResult:
        """Check a decoded model reply against this section's layout."""
        if not isinstance(payload, dict) or not isinstance(payload.get("identificacao"), dict) \
                or not isinstance(payload.get("avaliacao"), dict):
            raise UpstreamFailure(
                f"Invalid response for section {self.section_id}.",
                details="Response is missing the 'identificacao'/'avaliacao' envelope.",
            )
        try:
            parsed = self.response_model.model_validate(payload)
        except ValidationError as exc:
            raise UpstreamFailure(
                f"Invalid response for section {self.section_id}.",
                details=str(exc),
            ) from exc
        return SectionResult(
            identificacao=parsed.identificacao.model_dump(),
            avaliacao=parsed.avaliacao.model_dump(),
        )

    def catalog_entry(self) -> SectionCatalogEntry:
        return SectionCatalogEntry(
            key=self.key,
            section_id=self.section_id,
            title=self.title,
            description=self.description,
            uses_aux_fields=self.uses_aux_fields,
            fields={
                "identificacao": [name for name, _ in self.identificacao],
                "avaliacao": [name for name, _ in self.avaliacao],
            },
        )


_SPECS = (
    SectionSpec(
        section_id=1,
        title="Conteúdo Verbal",
        description="Análise da mensagem explícita e implícita, tipo discursivo e coerência.",
        instruction=(
            "Identifique a mensagem central explícita e possíveis mensagens implícitas, simbólicas ou subversivas. "
            "Reconheça o tipo discursivo predominante e a natureza da fala. Avalie a clareza, a coerência e a "
            "progressão temática, identificando pressupostos não ditos, registros linguísticos mistos e inferências."
        ),
        identificacao=(
            ("mensagemCentralExplicita", TEXT),
            ("mensagensImplicitasSimbolicasSubversivas", LIST),
            ("tipoDiscursivoPredominante", one_of("narrativo", "expositivo", "argumentativo", "injuntivo")),
            ("naturezaDaFala", TEXT),
        ),
        avaliacao=(
            ("clarezaCoerenciaProgressaoTematica", TEXT),
            ("pressupostosNaoDitos", LIST),
            ("registrosLinguisticosMistos", LIST),
            ("inferencias", LIST),
        ),
    ),
    SectionSpec(
        section_id=2,
        title="Estrutura Expressiva",
        description="Análise de entonação, gestos, ritmo e impacto na credibilidade.",
        instruction=(
            "Capture recursos expressivos como entonação, pausas, gestos e ritmo. Avalie o alinhamento desses "
            "elementos à intenção comunicativa. Identifique se a entrega soa ensaiada ou espontânea. Avalie se há "
            "amplificação ou obscurecimento da mensagem por figuras retóricas. Afira se o vídeo transmite "
            "credibilidade, carisma ou autoridade."
        ),
        identificacao=(
            ("recursosExpressivos", LIST),
            ("tipoDeEntrega", one_of("ensaiada", "espontanea", "mista")),
            ("figurasRetoricas", LIST),
        ),
        avaliacao=(
            ("alinhamentoIntencaoComunicativa", TEXT),
            ("amplificacaoObscurecimentoMensagem", TEXT),
            ("transmiteCredibilidadeCarismaAutoridade", TEXT),
        ),
        uses_aux_fields=True,
    ),
    SectionSpec(
        section_id=3,
        title="Situação Comunicativa",
        description="Identificação de emissor, destinatário, contexto e contrato comunicacional.",
        instruction=(
            "Identifique o emissor, o destinatário presumido e o contexto de veiculação. Reconheça a função "
            "comunicativa predominante. Avalie o contrato comunicacional estabelecido, a adequação da mensagem ao "
            "contexto e a relação construída entre emissor e destinatário."
        ),
        identificacao=(
            ("emissor", TEXT),
            ("destinatarioPresumido", TEXT),
            ("contextoDeVeiculacao", TEXT),
            (
                "funcaoComunicativaPredominante",
                one_of("referencial", "emotiva", "conativa", "fatica", "metalinguistica", "poetica"),
            ),
        ),
        avaliacao=(
            ("contratoComunicacional", TEXT),
            ("adequacaoAoContexto", TEXT),
            ("relacaoEmissorDestinatario", TEXT),
        ),
        uses_aux_fields=True,
    ),
    SectionSpec(
        section_id=4,
        title="Sistema de Signos Visuais e Sonoros",
        description="Detecção e avaliação de elementos visuais e sonoros e montagem.",
        instruction=(
            "Detecte os elementos visuais (cenário, enquadramento, cores, textos na tela) e sonoros (trilha, "
            "efeitos, silêncios) inferíveis do conteúdo e dos dados complementares. Classifique o tipo de montagem. "
            "Avalie a coerência entre os signos, a função da montagem e a contribuição desses elementos para o "
            "sentido global."
        ),
        identificacao=(
            ("elementosVisuais", LIST),
            ("elementosSonoros", LIST),
            ("tipoDeMontagem", one_of("linear", "paralela", "fragmentada", "plano-sequencia")),
        ),
        avaliacao=(
            ("coerenciaEntreSignos", TEXT),
            ("funcaoDaMontagem", TEXT),
            ("contribuicaoParaOSentido", TEXT),
        ),
        uses_aux_fields=True,
    ),
    SectionSpec(
        section_id=5,
        title="Efeitos Cognitivos e Emocionais",
        description="Identificação de emoções ativadas, gatilhos e adequação ao público.",
        instruction=(
            "Identifique as emoções ativadas, os gatilhos mentais empregados e o tom emocional predominante. "
            "Avalie a adequação desses efeitos ao público, o nível de engajamento esperado e os riscos de "
            "interpretação equivocada."
        ),
        identificacao=(
            ("emocoesAtivadas", LIST),
            ("gatilhosMentais", LIST),
            ("tomEmocionalPredominante", one_of("positivo", "negativo", "neutro", "misto")),
        ),
        avaliacao=(
            ("adequacaoAoPublico", TEXT),
            ("nivelDeEngajamentoEsperado", one_of("baixo", "medio", "alto")),
            ("riscosDeInterpretacao", LIST),
        ),
        uses_aux_fields=True,
    ),
    SectionSpec(
        section_id=6,
        title="Síntese e Coerência Global",
        description="Elementos nucleares da mensagem e integração multimodal.",
        instruction=(
            "Identifique os elementos nucleares da mensagem e o eixo temático que os une. Avalie a integração "
            "multimodal entre fala, imagem e som, classifique a coerência global e produza uma síntese do vídeo."
        ),
        identificacao=(
            ("elementosNucleares", LIST),
            ("eixoTematico", TEXT),
        ),
        avaliacao=(
            ("integracaoMultimodal", TEXT),
            ("coerenciaGlobal", one_of("baixa", "media", "alta")),
            ("sintese", TEXT),
        ),
    ),
    SectionSpec(
        section_id=7,
        title="Aspectos Técnicos",
        description="Nível técnico de captação, acessibilidade e percepção de profissionalismo.",
        instruction=(
            "Classifique o nível técnico de captação, identifique recursos de acessibilidade presentes "
            "(legendas, audiodescrição, contraste) e problemas técnicos perceptíveis. Avalie a percepção de "
            "profissionalismo, o impacto técnico na compreensão e recomende melhorias."
        ),
        identificacao=(
            ("qualidadeDeCaptacao", one_of("amadora", "semiprofissional", "profissional")),
            ("recursosDeAcessibilidade", LIST),
            ("problemasTecnicos", LIST),
        ),
        avaliacao=(
            ("percepcaoDeProfissionalismo", TEXT),
            ("impactoNaCompreensao", TEXT),
            ("recomendacoesTecnicas", LIST),
        ),
        uses_aux_fields=True,
    ),
    SectionSpec(
        section_id=8,
        title="Potencial de Uso Estratégico",
        description="Aplicação em marketing, canais, público e métricas esperadas.",
        instruction=(
            "Identifique aplicações do vídeo em marketing e comunicação, os canais de distribuição mais adequados "
            "e o público-alvo. Avalie as métricas esperadas, o potencial de alcance e recomende ações estratégicas."
        ),
        identificacao=(
            ("aplicacoesEmMarketing", LIST),
            ("canaisRecomendados", LIST),
            ("publicoAlvo", TEXT),
        ),
        avaliacao=(
            ("metricasEsperadas", LIST),
            ("potencialDeAlcance", one_of("baixo", "medio", "alto")),
            ("recomendacoesEstrategicas", LIST),
        ),
        uses_aux_fields=True,
    ),
)

SECTION_SPECS: Dict[int, SectionSpec] = {spec.section_id: spec for spec in _SPECS}


def get_section_spec(section_id: int) -> SectionSpec:
    if isinstance(section_id, bool) or not isinstance(section_id, int) or section_id not in SECTION_SPECS:
        raise InvalidSectionError(f"Section must be an integer between 1 and 8, got {section_id!r}.")
    return SECTION_SPECS[section_id]


def section_catalog() -> List[SectionCatalogEntry]:
    return [SECTION_SPECS[section_id].catalog_entry() for section_id in sorted(SECTION_SPECS)]

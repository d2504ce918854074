"""
기본 불용어 목록 (영어 + 중국어).

일반 기능어 외에 의학 논문 초록에 흔히 등장해 변별력이 없는
용어(study, patients, 研究, 患者 등)를 포함합니다.
"""

ENGLISH_STOPWORDS = (
    'the', 'a', 'an', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for', 'of', 'with', 'by',
    'is', 'are', 'was', 'were', 'be', 'been', 'being', 'have', 'has', 'had', 'do', 'does', 'did',
    'will', 'would', 'could', 'should', 'may', 'might', 'must', 'can', 'this', 'that', 'these', 'those',
    'i', 'you', 'he', 'she', 'it', 'we', 'they', 'me', 'him', 'her', 'us', 'them', 'my', 'your', 'his',
    'its', 'our', 'their', 'from', 'up', 'about', 'into', 'through', 'during', 'before', 'after',
    'above', 'below', 'between', 'among', 'not', 'no', 'nor', 'so', 'than', 'too', 'very', 'just', 'now',
    # 논문 초록의 상투적 용어
    'study', 'studies', 'research', 'analysis', 'method', 'methods', 'result', 'results', 'conclusion',
    'conclusions', 'background', 'objective', 'objectives', 'purpose', 'aim', 'aims', 'data', 'patient',
    'patients', 'group', 'groups', 'control', 'treatment', 'clinical', 'trial', 'trials', 'effect',
    'effects', 'significant', 'significantly', 'associated', 'association', 'compared', 'comparison',
    'increase', 'increased', 'decrease', 'decreased', 'high', 'low', 'level', 'levels', 'rate', 'rates',
)

CHINESE_STOPWORDS = (
    '的', '了', '在', '是', '我', '有', '和', '就', '不', '人', '都', '一', '一个', '上', '也', '很', '到', '说', '要', '去',
    '你', '会', '着', '没有', '看', '好', '自己', '这', '那', '里', '就是', '还', '把', '比', '让', '时', '过', '出', '小',
    '么', '起', '你们', '到了', '大', '来', '他', '真的', '手', '高', '等', '老', '什么', '这个', '中', '下', '为', '来了',
    # 논문 초록의 상투적 용어
    '研究', '分析', '方法', '结果', '结论', '背景', '目的', '目标', '数据', '患者', '病人', '组', '对照', '治疗', '临床',
    '试验', '效果', '显著', '相关', '关联', '比较', '增加', '减少', '提高', '降低', '水平', '程度', '发现', '观察',
    '统计', '差异', '意义', 'p值', '置信', '区间', '样本', '例数', '病例', '疾病', '症状', '诊断', '预后', '随访',
)

DEFAULT_STOPWORDS = frozenset(ENGLISH_STOPWORDS + CHINESE_STOPWORDS)

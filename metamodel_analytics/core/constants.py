"""Shared constants: type tags, edge types and the closed option sets."""

FEATURE_FILE_SUFFIX = ".features"
MODEL_FILE_EXTENSION = ".ecore"

# Element type tags (Ecore metaclasses)
EPACKAGE = "EPackage"
ECLASS = "EClass"
EDATATYPE = "EDataType"
EENUM = "EEnum"
EENUM_LITERAL = "EEnumLiteral"
EATTRIBUTE = "EAttribute"
EREFERENCE = "EReference"
EOPERATION = "EOperation"
EPARAMETER = "EParameter"

ELEMENT_TYPES = (
    EPACKAGE, EDATATYPE, ECLASS, EREFERENCE, EATTRIBUTE,
    EENUM, EENUM_LITERAL, EOPERATION, EPARAMETER,
)

# Edge types
CONTAINS = "contains"
HAS_SUPERTYPE = "has-supertype"
THROWS = "throws"

EDGE_TYPES = (CONTAINS, HAS_SUPERTYPE, THROWS)

# Element types that root a tree under the ntree structure
TREE_ROOT_TYPES = (EPACKAGE, ECLASS, EENUM, EDATATYPE, EOPERATION)

# Tags that may match each other under relaxed type matching
RELAXED_TYPE_GROUPS = (
    frozenset({EATTRIBUTE, EREFERENCE}),
    frozenset({ECLASS, EDATATYPE, EENUM}),
    frozenset({HAS_SUPERTYPE, THROWS}),
)

# Closed option sets for the parameter record
SCOPES = ("model", "fragment")
UNITS = ("name", "type", "name-type")
STRUCTURES = ("unigram", "bigram", "ntree")
WEIGHT_SCHEMES = ("raw", "w1", "w2")
IDF_MODES = ("none", "log", "norm-log")
TYPE_MATCHES = ("strict", "relaxed")
SYNONYM_MODES = ("none", "full", "reduced")
SYNONYM_THRESHOLDS = (None, 60, 80, 100)
NGRAM_COMPARISONS = ("fixed", "linear-sliding")
CONTEXT_MATCHES = ("strict", "linear")
FREQUENCIES = ("sum", "max")
VSM_MODES = ("linear", "quadratic")
GOALS = ("cluster", "clone")

# Output file names
NAMES_FILE = "names.csv"
SIZES_FILE = "sizes.csv"
CLUSTER_LABELS_FILE = "clusterLabels.csv"
CLONE_PAIRS_FILE = "clonePairs.csv"
CLONE_GROUPS_FILE = "cloneGroups.csv"
PREDICTIONS_FILE = "y_pred.json"
TASK_DESCRIPTOR_FILE = "X_attrs.json"

from .auth import ParentRegister, ParentLogin, ChildLogin
from .child import Child, ChildCreate, ChildUpdate
from .package import PackageImport, PackageProblemIn, PackageAssign
from .assignment import (
    AssignmentCreate, AssignmentStatus, AnswerSubmit, HintRequest, ReorderRequest, SubmitResult,
    MathProblemIn, ReadingQuestionIn,
)

__all__ = [
    'ParentRegister', 'ParentLogin', 'ChildLogin', 'Child', 'ChildCreate', 'ChildUpdate',
    'PackageImport', 'PackageProblemIn', 'PackageAssign', 'AssignmentCreate', 'AssignmentStatus',
    'AnswerSubmit', 'HintRequest', 'ReorderRequest', 'SubmitResult', 'MathProblemIn', 'ReadingQuestionIn',
]

class QuizError(Exception):
    pass


class QuestionSetError(QuizError):
    pass

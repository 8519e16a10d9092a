import typing


__all__ = (
    'StepResponse',
)


class StepResponse:
    """Optional return value of forward() separating two payloads.

    output flows to later nodes of the workflow; compensation_input is what
    compensate() receives if the run is rolled back. When a step returns a
    plain value, that value serves both purposes.
    """

    __slots__ = ('output', 'compensation_input')

    def __init__(self, output: typing.Any, compensation_input: typing.Any = None):
        self.output = output
        self.compensation_input = output if compensation_input is None else compensation_input

    def __repr__(self):
        return "StepResponse(%r, %r)" % (self.output, self.compensation_input)

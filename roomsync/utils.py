# vim: ts=4 et sw=4 sts=4 :


class CommandEvaluator:
    """Helper class that runs an external command and returns its standard
    output as a string."""

    def __init__(self, cmd):
        """:param str cmd: A string containing the external command plus
        possible parameters."""
        self.m_eval_cmd = cmd.split()

    def getResult(self):
        import subprocess
        output = subprocess.check_output(
            self.m_eval_cmd,
            shell=False,
            close_fds=True
        )

        return output.decode('utf8').strip()


class CallbackMultiplexer:
    """A helper class that multiplexes callback invocations to a dynamic list
    of callback consumers.
    """

    def __init__(self):
        # list of actual consumers to forward callbacks to
        self.m_consumers = []

    def addConsumer(self, consumer):
        self.m_consumers.append(consumer)

    def delConsumer(self, consumer):
        self.m_consumers.remove(consumer)

    def _invoke(self, *args, **kwargs):
        method_name = kwargs.pop("method_name")

        # consumers may unregister themselves from within a callback
        for consumer in list(self.m_consumers):
            method = getattr(consumer, method_name)
            method(*args, **kwargs)

    def __getattr__(self, method_name):
        if method_name.startswith("m_"):
            raise AttributeError(method_name)
        import functools
        return functools.partial(self._invoke, method_name=method_name)


def getExceptionContext(ex):
    import sys
    import traceback

    _, _, tb = sys.exc_info()
    if tb is None:
        return str(ex)
    fn, ln, _, _ = traceback.extract_tb(tb)[-1]
    return "{}:{}: {}".format(fn, ln, str(ex))

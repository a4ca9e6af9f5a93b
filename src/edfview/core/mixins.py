"""Mixins endowing edfview's readers and sources with echo and print
representations."""

import inspect
import pprint


class ViewInstance:
    """Mixin endowing inheritors with echo and print str representations.

    Only instance attributes are shown. Properties of readers and sources
    may read from files so they are not evaluated.
    """

    __slots__ = ()

    def _fetch_attributes(self):
        """Returns a dict of all non-protected attrs."""

        if '__dict__' in dir(self):
            return {attr: val for attr, val in self.__dict__.items()
                    if not attr.startswith('_')}

        #slotted instance
        return {attr: getattr(self, attr) for attr in self.__slots__}

    def __repr__(self):
        """Returns the __init__'s signature as the echo representation."""

        signature = inspect.signature(self.__init__)
        cls_name = type(self).__name__
        return '{}{}'.format(cls_name, signature)

    def __str__(self):
        """Returns this instance's print representation."""

        cls_name = type(self).__name__
        attrs = self._fetch_attributes()
        msg_start = cls_name + ' Object\n' + '---Attributes---'
        pp = pprint.PrettyPrinter(sort_dicts=False, compact=True)
        msg_body = pp.pformat(attrs)
        msg_end = 'Type help({}) for full documentation'.format(cls_name)
        return '\n'.join([msg_start, msg_body, msg_end])
